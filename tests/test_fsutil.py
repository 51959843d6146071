from __future__ import annotations

import errno
from pathlib import Path

import pytest

from alpack.errors import FilesystemError
from alpack.lib.fsutil import can_write_into, remove_tree, resolve_primary_or_fallback


class RecordingMkdir:
    def __init__(self, fail: dict):
        self.fail = fail
        self.calls = []

    def __call__(self, path: Path) -> None:
        self.calls.append(path)
        exc = self.fail.get(path)
        if exc is not None:
            raise exc
        path.mkdir(parents=True, exist_ok=True)


def test_primary_ok(tmp_path):
    mkdir = RecordingMkdir({})
    path, used = resolve_primary_or_fallback(tmp_path / "a", tmp_path / "b", mkdir=mkdir)
    assert (path, used) == (tmp_path / "a", False)
    assert mkdir.calls == [tmp_path / "a"]


def test_permission_denied_uses_fallback_once(tmp_path, caplog):
    primary, fallback = tmp_path / "locked", tmp_path / "home"
    mkdir = RecordingMkdir({primary: PermissionError(errno.EACCES, "denied")})

    path, used = resolve_primary_or_fallback(primary, fallback, mkdir=mkdir)

    assert path == fallback
    assert used is True
    assert mkdir.calls == [primary, fallback]
    assert fallback.is_dir()
    assert "Permission denied" in caplog.text


def test_other_errors_do_not_fall_back(tmp_path):
    primary = tmp_path / "a"
    mkdir = RecordingMkdir({primary: OSError(errno.ENOSPC, "no space")})
    with pytest.raises(FilesystemError):
        resolve_primary_or_fallback(primary, tmp_path / "b", mkdir=mkdir)
    assert mkdir.calls == [primary]


def test_failing_fallback_is_fatal(tmp_path):
    primary, fallback = tmp_path / "a", tmp_path / "b"
    mkdir = RecordingMkdir(
        {
            primary: PermissionError(errno.EACCES, "denied"),
            fallback: PermissionError(errno.EACCES, "denied"),
        }
    )
    with pytest.raises(FilesystemError) as ei:
        resolve_primary_or_fallback(primary, fallback, mkdir=mkdir)
    assert str(fallback) in ei.value.message


def test_can_write_into(tmp_path):
    assert can_write_into(tmp_path)
    assert not (tmp_path / ".permission_test").exists()
    assert not can_write_into(tmp_path / "missing")


def test_remove_tree(tmp_path):
    d = tmp_path / "cache"
    (d / "sub").mkdir(parents=True)
    (d / "sub" / "f").write_text("x")
    assert remove_tree(d)
    assert not d.exists()
    assert remove_tree(d)
