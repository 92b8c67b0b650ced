"""
BLAKE3 content digests for downloaded artifacts and outputs.
"""

import logging
from pathlib import Path
from typing import BinaryIO, NamedTuple, Union

import zstandard
from blake3 import blake3

log = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class DigestCheck(NamedTuple):
    matched: bool
    actual: str


def digest_stream(stream: BinaryIO) -> str:
    """Hashes a binary stream to exhaustion and returns the hex digest."""
    hasher = blake3()
    while chunk := stream.read(CHUNK_SIZE):
        hasher.update(chunk)
    return hasher.hexdigest()


def compute_digest(path: Union[str, Path]) -> str:
    """Returns the hex BLAKE3 digest of a file."""
    with open(path, "rb") as f:
        return digest_stream(f)


def verify_digest(path: Union[str, Path], expected: str = "") -> DigestCheck:
    """
    Hashes ``path`` and compares it against ``expected``.

    The expected value is trimmed and compared case-insensitively. An empty
    expected value always matches, which lets callers use this to simply
    compute a digest. I/O failures propagate as ``OSError``.
    """
    actual = compute_digest(path)
    expected = (expected or "").strip()
    if not expected:
        return DigestCheck(True, actual)
    matched = expected.lower() == actual.lower()
    if not matched:
        log.debug(f"Digest mismatch for '{path}': expected {expected}, got {actual}")
    return DigestCheck(matched, actual)


def digest_zstd_content(path: Union[str, Path]) -> str:
    """Returns the digest of the decompressed content of a zstd artifact."""
    with open(path, "rb") as f:
        with zstandard.ZstdDecompressor().stream_reader(f, read_across_frames=True) as reader:
            return digest_stream(reader)
