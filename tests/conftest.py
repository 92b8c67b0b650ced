"""Shared fixtures for ppkgmgr tests."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest
import yaml

from ppkgmgr.exceptions import TransportError
from ppkgmgr.models.config import AppConfig
from ppkgmgr.storage.config_manager import ConfigManager


class FakeDownloader:
    """Serves canned bodies by URL and records every request."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = dict(files or {})
        self.calls: list[tuple[str, str]] = []

    def __call__(self, url: str, dest: str) -> int:
        self.calls.append((url, dest))
        if url not in self.files:
            raise TransportError(f"unexpected status: 404 Not Found ({url})")
        body = self.files[url]
        Path(dest).write_bytes(body)
        return len(body)


@pytest.fixture
def storage_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("PPKGMGR_HOME", str(home))
    return home


@pytest.fixture
def config(storage_home: Path) -> AppConfig:
    return ConfigManager().load_config()


@pytest.fixture
def fake_downloader() -> FakeDownloader:
    return FakeDownloader()


def write_manifest(path: Path, repositories: list[dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump({"version": 3, "repositories": repositories}, sort_keys=False),
        encoding="utf-8",
    )
    return path


def build_tar(members: list[dict], compression: str = "gz") -> bytes:
    """
    Builds a tar archive in memory.

    Each member is a dict with ``name`` and either ``data`` (regular file),
    ``dir=True``, ``symlink`` (link target) or ``hardlink`` (link target).
    """
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=f"w:{compression}") as archive:
        for member in members:
            info = tarfile.TarInfo(member["name"])
            info.mode = member.get("mode", 0o644)
            if member.get("dir"):
                info.type = tarfile.DIRTYPE
                info.mode = member.get("mode", 0o755)
                archive.addfile(info)
            elif "symlink" in member:
                info.type = tarfile.SYMTYPE
                info.linkname = member["symlink"]
                archive.addfile(info)
            elif "hardlink" in member:
                info.type = tarfile.LNKTYPE
                info.linkname = member["hardlink"]
                archive.addfile(info)
            else:
                data = member["data"]
                info.size = len(data)
                archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()
