"""
Utilities for expanding and resolving manifest output paths.
"""

import ntpath
import os
import posixpath
import re

from ppkgmgr.exceptions import UnsafePathError
from ppkgmgr.models.manifest import FileEntry

_WINDOWS = os.name == "nt"

_ENV_PATTERN = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def default_data(value: str, default: str) -> str:
    """Returns ``default`` when ``value`` is empty."""
    return value if value else default


def expand_path(path: str) -> str:
    """
    Expands ``$VAR`` and ``${VAR}`` references in ``path``.

    Undefined variables expand to an empty string rather than being left in
    place, so ``$NOPE/bin`` becomes ``/bin``.
    """
    if not path:
        return ""

    def replacer(match: re.Match) -> str:
        name = match.group(1) if match.group(1) is not None else match.group(2)
        return os.environ.get(name, "")

    return _ENV_PATTERN.sub(replacer, path)


def strip_root(name: str) -> str:
    """Drops any drive or root prefix so ``name`` stays relative."""
    if _WINDOWS:
        name = ntpath.splitdrive(name)[1].replace("\\", "/")
    return name.lstrip("/")


def contained_name(name: str) -> str:
    """
    Cleans an output name so that joining it onto a directory stays inside it.

    The name is cleaned as if it were rooted, so leading '..' parts fall away:
    ``/../../x`` becomes ``x``. A name that cleans to nothing becomes ``"."``.
    """
    rooted = posixpath.normpath("/" + strip_root(name))
    return rooted.lstrip("/") or "."


def clean_join(directory: str, name: str) -> str:
    """Joins and normalises like a lexical path join (``./out`` + ``f`` -> ``out/f``)."""
    joined = os.path.join(directory, name) if directory else name
    if not joined:
        return ""
    return os.path.normpath(joined)


def resolve_out_dir(entry: FileEntry) -> str:
    """Returns the expanded output directory of an entry, defaulting to '.'."""
    return expand_path(default_data(entry.out_dir, "."))


def resolve_path(entry: FileEntry) -> str:
    """
    Computes the output path for a manifest entry.

    The output name is the entry's ``rename`` or its ``file_name``. Its root is
    stripped and leading '..' parts dropped, so it always lands inside the
    output directory.
    """
    out_dir = resolve_out_dir(entry)
    out_name = contained_name(default_data(entry.rename, entry.file_name))
    return clean_join(out_dir, out_name)


def planned_path(entry: FileEntry) -> str:
    """
    Path reported for an entry before anything is written.

    Entries that unpack a whole archive have no single output, so the expanded
    output directory stands in for it.
    """
    if entry.extracts_whole_archive:
        return resolve_out_dir(entry)
    return resolve_path(entry)


def sanitize_output_name(name: str) -> str:
    """Trims a rename value and confines it below the directory it is joined to."""
    return contained_name(name.strip())


def safe_relative_path(path: str) -> str:
    """
    Cleans an archive member or extract path and checks it stays relative.

    Returns ``"."`` for names that clean to the archive root. Raises
    ``UnsafePathError`` for absolute names and names that climb out with '..'.
    """
    normalized = path.replace("\\", "/")
    if normalized.startswith("/") or (_WINDOWS and ntpath.splitdrive(path)[0]):
        raise UnsafePathError(f"absolute paths are not allowed: {path!r}")
    cleaned = posixpath.normpath(normalized) if normalized else "."
    if cleaned == ".":
        return "."
    if cleaned == ".." or cleaned.startswith("../"):
        raise UnsafePathError(f"path traversal is not allowed: {path!r}")
    return cleaned
