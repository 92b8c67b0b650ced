"""
Naming and writing of the cached local copies of tracked manifests.
"""

import os
import re
from pathlib import Path
from typing import Union

from blake3 import blake3
from pathvalidate import sanitize_filename

DEFAULT_MANIFEST_NAME = "manifest.yml"

_WHITESPACE = re.compile(r"\s")


def generate_entry_id(source: str) -> str:
    """Derives the stable registry identifier of a manifest source."""
    return blake3(source.encode("utf-8")).digest()[:8].hex()


def sanitize_manifest_name(name: str) -> str:
    """Turns an arbitrary basename into a filesystem-friendly one."""
    cleaned = sanitize_filename(name, replacement_text="_")
    cleaned = _WHITESPACE.sub("_", cleaned)
    return cleaned or DEFAULT_MANIFEST_NAME


def manifest_cache_name(source: str) -> str:
    """
    Returns the cache file name for a manifest source.

    The name is ``<8 hex chars>_<basename>``; the prefix keeps sources that
    share a basename apart.
    """
    base = source.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    if base in ("", ".", ".."):
        base = DEFAULT_MANIFEST_NAME
    prefix = blake3(source.encode("utf-8")).digest()[:4].hex()
    return f"{prefix}_{sanitize_manifest_name(base)}"


def write_private(path: Union[str, Path], data: bytes) -> None:
    """Writes ``data`` to ``path`` readable by the owner only."""
    fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    os.chmod(path, 0o600)
