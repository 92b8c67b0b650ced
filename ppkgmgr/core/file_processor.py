"""
Handles the processing of a single manifest entry, from download to placement.
"""

import logging
import os
import tempfile
from typing import Callable, Optional, TextIO

from ppkgmgr.core.backup import backup_if_digest_mismatch, backup_output_if_exists
from ppkgmgr.core.decoder import DecodeOptions, decode_artifact
from ppkgmgr.core.digest import verify_digest
from ppkgmgr.exceptions import (
    ConfigurationError,
    DigestMismatchError,
    ErrorKind,
    PathResolutionError,
    PpkgError,
)
from ppkgmgr.models.manifest import FileEntry, Repository
from ppkgmgr.models.stats import DownloadStats
from ppkgmgr.utils.diagnostics import attempt, record
from ppkgmgr.utils.path import expand_path, planned_path, resolve_out_dir

log = logging.getLogger(__name__)

DownloadFunc = Callable[[str, str], int]


class FileProcessor:
    """
    Runs the download, verify, decode and place steps for one file entry.

    Errors that make the whole run meaningless (an unresolvable path, a backup
    that cannot be taken, no temp space) propagate. Anything that only affects
    the current file is recorded on ``stats`` so the run can continue.
    """

    def __init__(
        self,
        downloader: Optional[DownloadFunc],
        stats: DownloadStats,
        out: TextIO,
        spider: bool = False,
        force_overwrite: bool = False,
        safeguard_forced: bool = False,
    ):
        self.downloader = downloader
        self.stats = stats
        self.out = out
        self.spider = spider
        self.force_overwrite = force_overwrite
        self.safeguard_forced = safeguard_forced

    def process(self, repository: Repository, entry: FileEntry) -> None:
        url = repository.file_url(entry)
        try:
            target = planned_path(entry)
        except Exception as e:
            raise PathResolutionError(
                f"failed to determine download path for {entry.file_name}: {e}"
            ) from e

        self.stats.files_planned += 1
        if self.spider:
            self.out.write(f"{url}   {target}\n")
            return

        self._guard_existing_output(entry, target)
        temp_path = self._new_temp_artifact(entry)

        try:
            try:
                size = self.downloader(url, temp_path)
            except Exception as e:
                log.error(f"failed to download {url}: {e}")
                self.stats.record_failure(url, str(e))
                return

            try:
                self._process_artifact(entry, temp_path, target)
            except (PpkgError, OSError, ValueError) as e:
                log.error(f"failed to process {url}: {e}")
                self.stats.record_failure(url, str(e))
                return

            self.stats.files_downloaded += 1
            self.stats.bytes_downloaded += size or 0
            log.info(f"placed {url} => {target}")
        finally:
            record(attempt(f"cleanup temp file {temp_path}", lambda: os.remove(temp_path)), log)

    def _guard_existing_output(self, entry: FileEntry, target: str) -> None:
        """Moves an existing output aside according to the overwrite policy."""
        if entry.extracts_whole_archive:
            return

        if not self.force_overwrite:
            backup = backup_output_if_exists(target)
        elif self.safeguard_forced and entry.digest.strip():
            backup = backup_if_digest_mismatch(target, entry.digest)
        else:
            backup = None

        if backup is not None:
            self.stats.backups_created += 1

    def _new_temp_artifact(self, entry: FileEntry) -> str:
        try:
            fd, temp_path = tempfile.mkstemp(prefix="ppkgmgr-")
            os.close(fd)
        except OSError as e:
            raise PpkgError(
                f"failed to create temp file for {entry.file_name}: {e}",
                kind=ErrorKind.STRUCTURAL,
            ) from e
        return temp_path

    def _process_artifact(self, entry: FileEntry, artifact: str, target: str) -> None:
        if entry.artifact_digest.strip():
            check = verify_digest(artifact, entry.artifact_digest)
            if not check.matched:
                raise DigestMismatchError(
                    f"artifact digest mismatch: expected {entry.artifact_digest}, got {check.actual}"
                )

        options = DecodeOptions(
            encoding=entry.encoding,
            source_path=artifact,
            output_path=target,
            extract=entry.extract,
            rename=entry.rename,
        )
        if entry.is_archive:
            options.output_dir = resolve_out_dir(entry)
        final_path = decode_artifact(options)

        self._verify_output(entry, final_path)
        self._apply_mode(final_path, entry.mode)
        self._apply_symlink(entry)

    def _verify_output(self, entry: FileEntry, final_path: Optional[str]) -> None:
        if not entry.digest.strip():
            return
        if final_path is None:
            raise DigestMismatchError(
                "digest requires extract to target a single output path"
            )
        check = verify_digest(final_path, entry.digest)
        if not check.matched:
            record(attempt(f"cleanup {final_path}", lambda: os.remove(final_path)), log)
            raise DigestMismatchError(
                f"digest mismatch: expected {entry.digest}, got {check.actual}"
            )

    @staticmethod
    def _apply_mode(path: Optional[str], mode_value: str) -> None:
        if not path or not mode_value.strip():
            return
        try:
            mode = int(mode_value.strip(), 8)
        except ValueError as e:
            raise ValueError(f"invalid mode {mode_value!r}: {e}") from e
        os.chmod(path, mode)

    @staticmethod
    def _apply_symlink(entry: FileEntry) -> None:
        if entry.symlink is None:
            return
        link = expand_path(entry.symlink.link)
        target = expand_path(entry.symlink.target)
        if not link.strip():
            raise ValueError("symlink link is required")
        if not target.strip():
            raise ValueError("symlink target is required")

        parent = os.path.dirname(link)
        if parent:
            os.makedirs(parent, exist_ok=True)
        if os.path.lexists(link):
            os.remove(link)
        os.symlink(target, link)


def require_downloader(downloader: Optional[DownloadFunc], spider: bool) -> None:
    """Fails fast when a real run has nothing to download with."""
    if downloader is None and not spider:
        raise ConfigurationError("downloader is required")
