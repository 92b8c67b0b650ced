"""Output path resolution tests."""

from __future__ import annotations

import pytest

import ppkgmgr.utils.path as path_utils
from ppkgmgr.exceptions import UnsafePathError
from ppkgmgr.models.manifest import FileEntry
from ppkgmgr.utils.path import (
    contained_name,
    expand_path,
    planned_path,
    resolve_path,
    safe_relative_path,
    sanitize_output_name,
    strip_root,
)


def test_resolve_path_defaults_to_current_directory() -> None:
    assert resolve_path(FileEntry(file_name="a.txt")) == "a.txt"


def test_resolve_path_cleans_the_join() -> None:
    entry = FileEntry(file_name="file.txt", out_dir="./out")
    assert resolve_path(entry) == "out/file.txt"


def test_resolve_path_prefers_rename() -> None:
    entry = FileEntry(file_name="tool-linux-amd64", rename="tool", out_dir="/opt/bin")
    assert resolve_path(entry) == "/opt/bin/tool"


def test_absolute_rename_stays_inside_out_dir() -> None:
    entry = FileEntry(file_name="x", rename="/etc/passwd", out_dir="/srv/data")
    assert resolve_path(entry) == "/srv/data/etc/passwd"


def test_env_vars_are_expanded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PPKG_TEST_BASE", "/opt/pkg")
    entry = FileEntry(file_name="a", out_dir="${PPKG_TEST_BASE}/bin")
    assert resolve_path(entry) == "/opt/pkg/bin/a"


def test_undefined_env_vars_expand_to_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PPKG_TEST_MISSING", raising=False)
    assert expand_path("$PPKG_TEST_MISSING/bin") == "/bin"
    assert expand_path("${PPKG_TEST_MISSING}x") == "x"


def test_planned_path_for_whole_archive_is_the_out_dir() -> None:
    entry = FileEntry(file_name="a.tar.gz", encoding="tar+gzip", out_dir="./out")
    assert planned_path(entry) == "./out"


def test_planned_path_for_single_extract_uses_resolve_path() -> None:
    entry = FileEntry(
        file_name="a.tar.gz", encoding="tar+gzip", extract="bin/tool", out_dir="./out"
    )
    assert planned_path(entry) == "out/a.tar.gz"


def test_safe_relative_path_cleans_names() -> None:
    assert safe_relative_path("a/./b/../c") == "a/c"
    assert safe_relative_path("./") == "."
    assert safe_relative_path("dir\\file") == "dir/file"


@pytest.mark.parametrize("name", ["../evil", "a/../../evil", "..", "/etc/passwd"])
def test_safe_relative_path_rejects_escapes(name: str) -> None:
    with pytest.raises(UnsafePathError):
        safe_relative_path(name)


def test_sanitize_output_name_strips_root() -> None:
    assert sanitize_output_name("  /usr/bin/tool ") == "usr/bin/tool"
    assert sanitize_output_name("tool") == "tool"


@pytest.mark.parametrize("rename", ["/../../escaped", "/a/../../../escaped", "../../escaped"])
def test_rename_never_leaves_out_dir(rename: str) -> None:
    entry = FileEntry(file_name="x", rename=rename, out_dir="/srv/data/out")
    assert resolve_path(entry) == "/srv/data/out/escaped"


def test_contained_name_of_bare_root_is_current_dir() -> None:
    assert contained_name("/..") == "."
    assert sanitize_output_name(" / ") == "."


def test_drive_letters_are_plain_names_off_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(path_utils, "_WINDOWS", False)
    assert strip_root("C:foo") == "C:foo"
    assert safe_relative_path("C:foo") == "C:foo"


def test_drive_letters_are_stripped_on_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(path_utils, "_WINDOWS", True)
    entry = FileEntry(file_name="x", rename="C:\\tools\\bin.exe", out_dir="/srv")
    assert resolve_path(entry) == "/srv/tools/bin.exe"
    with pytest.raises(UnsafePathError):
        safe_relative_path("C:\\evil")
