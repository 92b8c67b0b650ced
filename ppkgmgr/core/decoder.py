"""
Decodes downloaded artifacts into their final on-disk form.

Plain and zstd artifacts decode to a single output file. Tar archives (gzip or
xz compressed) are unpacked into a private staging directory first; only once
the whole archive has been read safely is the result moved into place.
"""

import logging
import os
import shutil
import tarfile
import tempfile
from dataclasses import dataclass
from typing import Optional

import zstandard

from ppkgmgr.exceptions import DecodeError, PpkgError, UnsafePathError
from ppkgmgr.models.manifest import is_archive_encoding, normalize_encoding
from ppkgmgr.utils.path import safe_relative_path, sanitize_output_name

log = logging.getLogger(__name__)

_TAR_MODES = {"tar+gzip": "r:gz", "tar+xz": "r:xz"}


@dataclass
class DecodeOptions:
    """Describes how one artifact should be decoded or extracted."""

    encoding: str = ""
    source_path: str = ""
    output_path: str = ""
    output_dir: str = ""
    extract: str = ""
    rename: str = ""


def decode_artifact(options: DecodeOptions) -> Optional[str]:
    """
    Decodes an artifact and returns the resulting output path.

    Archive encodings need ``output_dir``; everything else needs
    ``output_path``. A whole-archive extraction produces many outputs and
    returns ``None``.
    """
    encoding = normalize_encoding(options.encoding)

    if is_archive_encoding(encoding):
        if not options.output_dir.strip():
            raise DecodeError(
                f"output directory is required for encoding {options.encoding!r}"
            )
        return extract_archive(
            encoding,
            options.source_path,
            options.output_dir,
            options.extract,
            options.rename,
        )

    if not options.output_path.strip():
        raise DecodeError(f"output path is required for encoding {options.encoding!r}")
    decode_file(encoding, options.source_path, options.output_path)
    return options.output_path


def decode_file(encoding: str, src_path: str, dst_path: str) -> None:
    """Writes ``src_path`` to ``dst_path``, decoding it if ``encoding`` asks for it."""
    parent = os.path.dirname(dst_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    cleaned = normalize_encoding(encoding)
    if cleaned in ("", "none"):
        _write_output(src_path, dst_path, "copy file", _copy_stream)
    elif cleaned == "zstd":
        _write_output(src_path, dst_path, "decode", _zstd_stream)
    else:
        raise DecodeError(f"unsupported encoding: {encoding}")


def _copy_stream(src, dst) -> None:
    shutil.copyfileobj(src, dst)


def _zstd_stream(src, dst) -> None:
    zstandard.ZstdDecompressor().copy_stream(src, dst)


def _write_output(src_path: str, dst_path: str, what: str, writer) -> None:
    try:
        with open(src_path, "rb") as src, open(dst_path, "wb") as dst:
            writer(src, dst)
    except (OSError, zstandard.ZstdError) as e:
        _remove_quietly(dst_path)
        raise DecodeError(f"{what}: {e}") from e


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.debug(f"Could not remove partial output '{path}': {e}")


def extract_archive(
    encoding: str, src_path: str, dst_dir: str, extract_path: str = "", rename: str = ""
) -> Optional[str]:
    """
    Unpacks a tar archive and moves the result into ``dst_dir``.

    With no ``extract`` path (or ``"."``) every top-level entry of the archive
    replaces the same-named entry in ``dst_dir`` and ``None`` is returned.
    Otherwise only the named path is moved, optionally renamed, and its final
    location is returned.
    """
    mode = _TAR_MODES.get(normalize_encoding(encoding))
    if mode is None:
        raise DecodeError(f"unsupported encoding: {encoding}")

    try:
        os.makedirs(dst_dir, exist_ok=True)
    except OSError as e:
        raise DecodeError(f"create destination directory: {e}") from e

    with tempfile.TemporaryDirectory(prefix="ppkgmgr-extract-") as staging:
        _extract_tar(src_path, mode, staging)

        clean_extract = extract_path.strip()
        if clean_extract in ("", "."):
            try:
                move_directory_contents(staging, dst_dir)
            except OSError as e:
                raise DecodeError(f"move extracted contents: {e}") from e
            return None

        relative = safe_relative_path(clean_extract)
        source = os.path.join(staging, relative)
        if not os.path.lexists(source):
            raise DecodeError(f"extract path {clean_extract!r} not found in archive")

        target_name = os.path.basename(relative)
        if rename.strip():
            target_name = sanitize_output_name(rename)
            if target_name == ".":
                raise DecodeError(f"invalid rename {rename!r} for extract path {clean_extract!r}")

        destination = os.path.join(dst_dir, target_name)
        try:
            move_path(source, destination)
        except OSError as e:
            raise DecodeError(f"move extracted path: {e}") from e
        return destination


def _extract_tar(src_path: str, mode: str, staging: str) -> None:
    label = "tar+gzip" if mode == "r:gz" else "tar+xz"
    try:
        with tarfile.open(src_path, mode) as archive:
            for member in archive:
                _extract_member(archive, member, staging)
    except PpkgError:
        raise
    except (OSError, EOFError, tarfile.TarError) as e:
        raise DecodeError(f"extract {label}: {e}") from e


def _ensure_inside(root: str, path: str, name: str) -> None:
    """Rejects writes that would land outside ``root`` via an extracted symlink."""
    real_root = os.path.realpath(root)
    real_parent = os.path.realpath(os.path.dirname(path))
    if real_parent != real_root and not real_parent.startswith(real_root + os.sep):
        raise UnsafePathError(f"tar entry {name!r} resolves outside the archive root")


def _extract_member(archive: tarfile.TarFile, member: tarfile.TarInfo, root: str) -> None:
    rel = safe_relative_path(member.name)
    if rel == ".":
        return

    path = os.path.join(root, rel)
    perm = member.mode & 0o777
    _ensure_inside(root, path, member.name)

    if member.isdir():
        os.makedirs(path, mode=perm, exist_ok=True)
    elif member.isreg():
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if os.path.islink(path):
            os.remove(path)
        source = archive.extractfile(member)
        fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, perm)
        with os.fdopen(fd, "wb") as out, source:
            shutil.copyfileobj(source, out)
    elif member.issym():
        link_target = member.linkname.strip()
        if not link_target:
            raise DecodeError(f"empty symlink target for {member.name!r}")
        if link_target.startswith(("/", "\\")) or os.path.isabs(link_target):
            raise UnsafePathError(
                f"absolute symlink target is not allowed for {member.name!r}: {member.linkname!r}"
            )
        os.makedirs(os.path.dirname(path), exist_ok=True)
        os.symlink(link_target, path)
    elif member.islnk():
        link_target = safe_relative_path(member.linkname)
        if link_target == ".":
            raise UnsafePathError(
                f"invalid hard link target {member.linkname!r} for {member.name!r}"
            )
        target_path = os.path.join(root, link_target)
        _ensure_inside(root, os.path.realpath(target_path), member.linkname)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        os.link(target_path, path)
    else:
        raise DecodeError(f"unsupported tar entry type {member.type!r} for {member.name!r}")


def move_directory_contents(src_dir: str, dst_dir: str) -> None:
    """Moves every top-level entry of ``src_dir`` into ``dst_dir``, replacing by name."""
    for name in sorted(os.listdir(src_dir)):
        move_path(os.path.join(src_dir, name), os.path.join(dst_dir, name))


def _remove_existing(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path, ignore_errors=True)
    elif os.path.lexists(path):
        os.remove(path)


def move_path(src_path: str, dst_path: str) -> None:
    """
    Moves a file, directory or symlink to ``dst_path``, replacing what is there.

    Tries an atomic rename first and falls back to copy-then-remove when the
    rename fails, e.g. when staging and destination live on different devices.
    Modes and symlinks are preserved by the copy.
    """
    parent = os.path.dirname(dst_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    _remove_existing(dst_path)

    try:
        os.rename(src_path, dst_path)
        return
    except OSError as e:
        log.debug(f"Rename of '{src_path}' failed ({e}), copying instead.")

    if os.path.islink(src_path):
        os.symlink(os.readlink(src_path), dst_path)
        os.remove(src_path)
    elif os.path.isdir(src_path):
        shutil.copytree(src_path, dst_path, symlinks=True)
        shutil.rmtree(src_path)
    else:
        shutil.copy2(src_path, dst_path)
        os.remove(src_path)


def compress_zstd(src_path: str, dst_path: str) -> None:
    """Compresses ``src_path`` into a zstd stream at ``dst_path``."""
    parent = os.path.dirname(dst_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    compressor = zstandard.ZstdCompressor()
    with open(src_path, "rb") as src, open(dst_path, "wb") as dst:
        compressor.copy_stream(src, dst)
