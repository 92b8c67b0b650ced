"""
Safeguards that move an existing output aside before it is overwritten.

Backups are taken by renaming the file to the first free name in the sequence
``<path>.bak``, ``<path>.bak.1`` ... ``<path>.bak.999``. Existing backups are
never overwritten.
"""

import logging
import os
from typing import Optional

from ppkgmgr.core.digest import verify_digest
from ppkgmgr.exceptions import BackupError

log = logging.getLogger(__name__)

MAX_BACKUP_INDEX = 999


def next_backup_path(path: str) -> str:
    """Finds the first unused backup name for ``path``."""
    candidate = f"{path}.bak"
    if not os.path.lexists(candidate):
        return candidate
    for i in range(1, MAX_BACKUP_INDEX + 1):
        candidate = f"{path}.bak.{i}"
        if not os.path.lexists(candidate):
            return candidate
    raise BackupError(f"unable to determine backup name for {path}")


def _existing_file(path: str) -> bool:
    """True if ``path`` is an existing regular file; raises for directories."""
    try:
        is_dir = os.path.isdir(path)
        exists = os.path.lexists(path)
    except OSError as e:
        raise BackupError(f"stat existing file: {e}") from e
    if not exists:
        return False
    if is_dir:
        raise BackupError(f"existing path {path} is a directory")
    return True


def _rename_to_backup(path: str) -> str:
    backup_path = next_backup_path(path)
    try:
        os.rename(path, backup_path)
    except OSError as e:
        raise BackupError(f"rename backup: {e}") from e
    log.warning(f"backed up {path} to {backup_path}")
    return backup_path


def backup_output_if_exists(path: str) -> Optional[str]:
    """
    Moves an existing file at ``path`` to its next backup name.

    Returns the backup path, or ``None`` when nothing exists at ``path``.
    Raises ``BackupError`` if ``path`` is a directory or cannot be renamed.
    """
    if not _existing_file(path):
        return None
    return _rename_to_backup(path)


def backup_if_digest_mismatch(path: str, expected: str) -> Optional[str]:
    """
    Backs up ``path`` only when it no longer matches its declared digest.

    A file that still matches ``expected`` was not edited locally and can be
    overwritten safely, so no backup is taken. Nothing happens when
    ``expected`` is blank or ``path`` does not exist.
    """
    expected = (expected or "").strip()
    if not expected:
        return None
    if not _existing_file(path):
        return None
    try:
        check = verify_digest(path, expected)
    except OSError as e:
        raise BackupError(f"verify digest: {e}") from e
    if check.matched:
        return None
    return _rename_to_backup(path)
