"""BLAKE3 digest verification tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import zstandard
from blake3 import blake3

from ppkgmgr.core.digest import compute_digest, digest_zstd_content, verify_digest


def test_compute_digest_matches_blake3(tmp_path: Path) -> None:
    path = tmp_path / "f"
    path.write_bytes(b"hello world")
    assert compute_digest(path) == blake3(b"hello world").hexdigest()


def test_empty_expected_only_computes(tmp_path: Path) -> None:
    path = tmp_path / "f"
    path.write_bytes(b"data")
    check = verify_digest(path, "  ")
    assert check.matched is True
    assert check.actual == blake3(b"data").hexdigest()


def test_expected_is_trimmed_and_case_insensitive(tmp_path: Path) -> None:
    path = tmp_path / "f"
    path.write_bytes(b"data")
    expected = f"  {blake3(b'data').hexdigest().upper()} \n"
    assert verify_digest(path, expected).matched is True


def test_mismatch_reports_actual(tmp_path: Path) -> None:
    path = tmp_path / "f"
    path.write_bytes(b"data")
    check = verify_digest(path, "00" * 32)
    assert check.matched is False
    assert check.actual == blake3(b"data").hexdigest()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        verify_digest(tmp_path / "missing", "")


def test_zstd_content_digest_hashes_decoded_bytes(tmp_path: Path) -> None:
    path = tmp_path / "f.zst"
    path.write_bytes(zstandard.ZstdCompressor().compress(b"payload" * 100))
    assert digest_zstd_content(path) == blake3(b"payload" * 100).hexdigest()
