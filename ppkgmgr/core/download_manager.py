"""
The main orchestrator for walking a manifest and materializing its files.
"""

import logging
import sys
from typing import Optional, TextIO

from ppkgmgr.exceptions import DownloadFailedError
from ppkgmgr.models.manifest import Manifest
from ppkgmgr.models.stats import DownloadStats

from .file_processor import DownloadFunc, FileProcessor, require_downloader

log = logging.getLogger(__name__)


class DownloadManager:
    """Processes every entry of a manifest, strictly in manifest order."""

    def __init__(
        self,
        downloader: Optional[DownloadFunc],
        spider: bool = False,
        force_overwrite: bool = False,
        safeguard_forced: bool = False,
        out: Optional[TextIO] = None,
    ):
        require_downloader(downloader, spider)
        self.stats = DownloadStats(spider=spider)
        self.file_processor = FileProcessor(
            downloader,
            self.stats,
            out if out is not None else sys.stdout,
            spider=spider,
            force_overwrite=force_overwrite,
            safeguard_forced=safeguard_forced,
        )

    def execute(self, manifest: Manifest) -> DownloadStats:
        """
        Attempts every file in ``manifest``.

        Per-file failures do not stop the run; once every file has been tried
        they are raised together as a ``DownloadFailedError``.
        """
        for repository, entry in manifest.entries():
            self.file_processor.process(repository, entry)

        log.debug(
            f"Run finished: {self.stats.files_downloaded} placed, "
            f"{self.stats.files_failed} failed, {self.stats.backups_created} backed up"
        )
        if self.stats.has_failures:
            raise DownloadFailedError(self.stats.failures)
        return self.stats


def download_files(
    manifest: Manifest,
    downloader: Optional[DownloadFunc],
    spider: bool = False,
    force_overwrite: bool = False,
    safeguard_forced: bool = False,
    out: Optional[TextIO] = None,
) -> DownloadStats:
    """
    Downloads, verifies and places every file a manifest declares.

    In ``spider`` mode nothing is written; one ``"<url>   <path>"`` line per
    file is printed to ``out`` instead. Without ``force_overwrite`` any existing
    output is backed up first. With ``force_overwrite`` and ``safeguard_forced``
    only outputs that no longer match their declared digest are backed up.
    """
    manager = DownloadManager(
        downloader,
        spider=spider,
        force_overwrite=force_overwrite,
        safeguard_forced=safeguard_forced,
        out=out,
    )
    return manager.execute(manifest)
