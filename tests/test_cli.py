"""Command-line interface tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import zstandard
from blake3 import blake3
from conftest import FakeDownloader, write_manifest
from typer.testing import CliRunner

import ppkgmgr.cli.app as cli_module
from ppkgmgr.storage.registry import RegistryStore

URL = "https://example.com/files"

runner = CliRunner()


@pytest.fixture
def downloader(storage_home: Path, monkeypatch: pytest.MonkeyPatch) -> FakeDownloader:
    fake = FakeDownloader({f"{URL}/a.txt": b"alpha"})
    monkeypatch.setattr(cli_module, "get_downloader", lambda config: fake)
    return fake


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    return write_manifest(
        tmp_path / "tools.yml",
        [{"url": URL, "files": [{"file_name": "a.txt", "out_dir": str(tmp_path / "out")}]}],
    )


def test_ver(storage_home: Path) -> None:
    result = runner.invoke(cli_module.app, ["ver"])
    assert result.exit_code == 0
    assert result.output == "Version : 0.1.0\n"


def test_version_flag(storage_home: Path) -> None:
    result = runner.invoke(cli_module.app, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_dl_spider(downloader: FakeDownloader, manifest: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["dl", "--spider", str(manifest)])
    assert result.exit_code == 0
    assert f"{URL}/a.txt   {tmp_path / 'out' / 'a.txt'}\n" in result.output
    assert downloader.calls == []


def test_dl_downloads(downloader: FakeDownloader, manifest: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["dl", str(manifest)])
    assert result.exit_code == 0
    assert (tmp_path / "out" / "a.txt").read_bytes() == b"alpha"


def test_dl_missing_manifest(storage_home: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["dl", str(tmp_path / "missing.yml")])
    assert result.exit_code == 2
    assert "not found path" in result.output


def test_dl_invalid_manifest(storage_home: Path, tmp_path: Path) -> None:
    path = tmp_path / "bad.yml"
    path.write_text("repositories: [oops\n")
    result = runner.invoke(cli_module.app, ["dl", str(path)])
    assert result.exit_code == 3


def test_dl_reports_failures(
    storage_home: Path, manifest: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(cli_module, "get_downloader", lambda config: FakeDownloader())
    result = runner.invoke(cli_module.app, ["dl", str(manifest)])
    assert result.exit_code == 4
    assert f"{URL}/a.txt" in result.output


def test_repo_add_ls_rm(storage_home: Path, manifest: Path) -> None:
    result = runner.invoke(cli_module.app, ["repo", "ls"])
    assert result.output == "no manifests registered\n"

    result = runner.invoke(cli_module.app, ["repo", "add", str(manifest)])
    assert result.exit_code == 0
    assert result.output.startswith("registered manifest: ")
    entry = RegistryStore.load(storage_home / "registry.json").entries[0]

    result = runner.invoke(cli_module.app, ["repo", "ls"])
    assert result.exit_code == 0
    assert "UPDATED AT" in result.output
    assert entry.id in result.output

    result = runner.invoke(cli_module.app, ["repo", "rm", entry.id])
    assert result.exit_code == 0
    assert result.output == f"removed manifest: {manifest}\n"


def test_repo_rm_unknown(storage_home: Path) -> None:
    result = runner.invoke(cli_module.app, ["repo", "rm", "nope"])
    assert result.exit_code == 2


def test_pkg_up(downloader: FakeDownloader, manifest: Path, tmp_path: Path) -> None:
    runner.invoke(cli_module.app, ["repo", "add", str(manifest)])

    result = runner.invoke(cli_module.app, ["pkg", "up"])
    assert result.exit_code == 0
    assert f"updated files for: {manifest}" in result.output
    assert (tmp_path / "out" / "a.txt").exists()

    result = runner.invoke(cli_module.app, ["pkg", "up"])
    assert f"manifest unchanged: {manifest}" in result.output

    result = runner.invoke(cli_module.app, ["pkg", "up", "-r"])
    assert f"redownload requested: {manifest}" in result.output


def test_pkg_up_empty(downloader: FakeDownloader) -> None:
    result = runner.invoke(cli_module.app, ["pkg", "up"])
    assert result.exit_code == 0
    assert result.output == "no manifests registered\n"


def test_util_dig(storage_home: Path, tmp_path: Path) -> None:
    path = tmp_path / "f.txt"
    path.write_bytes(b"content")
    digest = blake3(b"content").hexdigest()

    result = runner.invoke(cli_module.app, ["util", "dig", str(path)])
    assert result.output == f"{digest}\n"

    result = runner.invoke(cli_module.app, ["util", "dig", "--format", "yaml", str(path)])
    assert "file_name: f.txt" in result.output
    assert f"digest: {digest}" in result.output


def test_util_dig_artifact_mode(storage_home: Path, tmp_path: Path) -> None:
    path = tmp_path / "f.zst"
    path.write_bytes(zstandard.ZstdCompressor().compress(b"content"))

    result = runner.invoke(
        cli_module.app, ["util", "dig", "--mode", "artifact", "--format", "yaml", str(path)]
    )

    assert result.exit_code == 0
    assert f"digest: {blake3(b'content').hexdigest()}" in result.output
    assert f"artifact_digest: {blake3(path.read_bytes()).hexdigest()}" in result.output
    assert "encoding: zstd" in result.output


def test_util_dig_rejects_unknown_mode(storage_home: Path, tmp_path: Path) -> None:
    path = tmp_path / "f.txt"
    path.write_bytes(b"x")
    result = runner.invoke(cli_module.app, ["util", "dig", "--mode", "bogus", str(path)])
    assert result.exit_code == 1


def test_util_dig_missing_file(storage_home: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["util", "dig", str(tmp_path / "missing")])
    assert result.exit_code == 5


def test_util_zstd(storage_home: Path, tmp_path: Path) -> None:
    src = tmp_path / "plain.txt"
    src.write_bytes(b"compress me" * 10)
    dst = tmp_path / "plain.txt.zst"

    result = runner.invoke(cli_module.app, ["util", "zstd", str(src), str(dst)])

    assert result.exit_code == 0
    assert result.output == f"{blake3(dst.read_bytes()).hexdigest()}\n"
    assert zstandard.ZstdDecompressor().decompressobj().decompress(dst.read_bytes()) == (
        b"compress me" * 10
    )


def test_util_zstd_same_paths(storage_home: Path, tmp_path: Path) -> None:
    src = tmp_path / "plain.txt"
    src.write_bytes(b"x")
    result = runner.invoke(cli_module.app, ["util", "zstd", str(src), str(src)])
    assert result.exit_code == 1
