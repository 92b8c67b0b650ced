"""
Helpers for reasoning about the outputs a manifest declares.
"""

import logging
import os
from dataclasses import dataclass

from ppkgmgr.core.backup import backup_if_digest_mismatch
from ppkgmgr.core.digest import verify_digest
from ppkgmgr.exceptions import PathResolutionError, PpkgError
from ppkgmgr.models.manifest import Manifest
from ppkgmgr.storage.manifest_loader import parse_manifest
from ppkgmgr.utils.diagnostics import Outcome, attempt, record
from ppkgmgr.utils.path import resolve_path

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    """An output path generated from a manifest entry and its declared digest."""

    path: str
    digest: str = ""


def targets(manifest: Manifest) -> list[Target]:
    """Collects the output path of every entry, in manifest order."""
    return [
        Target(path=resolve_path(entry), digest=entry.digest.strip())
        for _, entry in manifest.entries()
    ]


def extract_targets(path: str) -> list[Target]:
    """Parses the manifest at ``path`` and returns its targets."""
    return targets(parse_manifest(path))


def _cleanup_target(target: Target) -> Outcome:
    try:
        backup = backup_if_digest_mismatch(target.path, target.digest)
    except PpkgError as e:
        return Outcome(f"failed to safeguard {target.path}", e)
    if backup is not None:
        return Outcome(f"backed up {target.path}")
    return attempt(f"failed to remove outdated file {target.path}", lambda: os.remove(target.path))


def cleanup_old_targets(old_targets: list[Target]) -> None:
    """
    Removes outputs left behind by a previous version of a manifest.

    Files that no longer match their declared digest were edited locally, so
    they are backed up instead of deleted. Failures are only reported.
    """
    for target in old_targets:
        record(_cleanup_target(target), log)


def files_need_refresh(manifest: Manifest) -> bool:
    """True if any target is missing, is a directory or fails its declared digest."""
    for _, entry in manifest.entries():
        path = resolve_path(entry)
        if not os.path.exists(path):
            return True
        if os.path.isdir(path):
            return True
        digest = entry.digest.strip()
        if not digest:
            continue
        try:
            check = verify_digest(path, digest)
        except OSError as e:
            raise PathResolutionError(f"verify digest for {path}: {e}") from e
        if not check.matched:
            return True
    return False
