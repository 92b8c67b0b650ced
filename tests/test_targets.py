"""Manifest target tracking tests."""

from __future__ import annotations

from pathlib import Path

from blake3 import blake3
from conftest import write_manifest

from ppkgmgr.core.targets import Target, cleanup_old_targets, extract_targets, files_need_refresh
from ppkgmgr.models.manifest import Manifest


def _manifest(out_dir: Path, *files: dict) -> Manifest:
    entries = [{"out_dir": str(out_dir), **f} for f in files]
    return Manifest.model_validate({"repositories": [{"url": "https://x", "files": entries}]})


def test_extract_targets_follows_manifest_order(tmp_path: Path) -> None:
    path = write_manifest(
        tmp_path / "m.yml",
        [
            {"url": "https://a", "files": [{"file_name": "one", "out_dir": "/o", "digest": " AB "}]},
            {"url": "https://b", "files": [{"file_name": "two", "out_dir": "/o", "rename": "2"}]},
        ],
    )
    assert extract_targets(str(path)) == [Target("/o/one", "AB"), Target("/o/2", "")]


def test_cleanup_removes_unmodified_and_backs_up_modified(tmp_path: Path) -> None:
    clean = tmp_path / "clean"
    clean.write_bytes(b"original")
    edited = tmp_path / "edited"
    edited.write_bytes(b"changed by user")
    undigested = tmp_path / "undigested"
    undigested.write_bytes(b"anything")
    digest = blake3(b"original").hexdigest()

    cleanup_old_targets(
        [
            Target(str(clean), digest),
            Target(str(edited), digest),
            Target(str(undigested)),
            Target(str(tmp_path / "already-gone"), digest),
        ]
    )

    assert not clean.exists()
    assert not edited.exists()
    assert (tmp_path / "edited.bak").read_bytes() == b"changed by user"
    assert not undigested.exists()


def test_cleanup_reports_directories_without_raising(tmp_path: Path, caplog) -> None:
    target = tmp_path / "dir"
    target.mkdir()
    cleanup_old_targets([Target(str(target))])
    assert target.is_dir()
    assert "failed to remove outdated file" in caplog.text


def test_missing_file_needs_refresh(tmp_path: Path) -> None:
    assert files_need_refresh(_manifest(tmp_path, {"file_name": "a"})) is True


def test_directory_in_place_of_file_needs_refresh(tmp_path: Path) -> None:
    (tmp_path / "a").mkdir()
    assert files_need_refresh(_manifest(tmp_path, {"file_name": "a"})) is True


def test_present_files_without_digest_are_fresh(tmp_path: Path) -> None:
    (tmp_path / "a").write_bytes(b"a")
    assert files_need_refresh(_manifest(tmp_path, {"file_name": "a"})) is False


def test_digest_drift_needs_refresh(tmp_path: Path) -> None:
    (tmp_path / "a").write_bytes(b"a")
    (tmp_path / "b").write_bytes(b"edited")
    manifest = _manifest(
        tmp_path,
        {"file_name": "a", "digest": blake3(b"a").hexdigest()},
        {"file_name": "b", "digest": blake3(b"b").hexdigest()},
    )
    assert files_need_refresh(manifest) is True


def test_matching_digests_are_fresh(tmp_path: Path) -> None:
    (tmp_path / "a").write_bytes(b"a")
    manifest = _manifest(tmp_path, {"file_name": "a", "digest": blake3(b"a").hexdigest()})
    assert files_need_refresh(manifest) is False
