from .download_manager import DownloadManager, download_files
from .file_processor import FileProcessor
from .targets import Target, cleanup_old_targets, extract_targets, files_need_refresh, targets
from .updater import PkgUpdater, run_pkg_up

__all__ = [
    "DownloadManager",
    "FileProcessor",
    "PkgUpdater",
    "Target",
    "cleanup_old_targets",
    "download_files",
    "extract_targets",
    "files_need_refresh",
    "run_pkg_up",
    "targets",
]
