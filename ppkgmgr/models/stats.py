"""
Dataclass for tracking the outcome of a manifest download run.
"""

import time
from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks statistics for one pass over a manifest."""

    files_planned: int = 0
    files_downloaded: int = 0
    files_failed: int = 0
    backups_created: int = 0
    bytes_downloaded: int = 0
    spider: bool = False
    failures: list[tuple[str, str]] = field(default_factory=list)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def record_failure(self, subject: str, reason: str) -> None:
        """Records a per-file failure without interrupting the run."""
        self.files_failed += 1
        self.failures.append((subject, reason))

    @property
    def has_failures(self) -> bool:
        return self.files_failed > 0

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started
