from __future__ import annotations

import os
import stat

import pytest

from alpack.errors import ConfigError, ExternalProcessError
from alpack.lib import sandbox as sandbox_mod
from alpack.lib.apk import apk_command, write_repositories
from alpack.lib.command import run_cmd
from alpack.lib.env import get_arch, normalize_arch
from alpack.lib.sandbox import GUEST_PATH, Sandbox, build_argv, resolve_handler

from conftest import FakeResponse, FakeSession


def test_proot_argv():
    argv = build_argv("proot", "/usr/bin/proot", "/r", ["/bin/sh", "-c", "ls"], binds=["/home:/mnt"])
    assert argv == [
        "/usr/bin/proot",
        "-R",
        "/r",
        "-w",
        "/",
        "-b",
        "/home:/mnt",
        "/usr/bin/env",
        f"PATH={GUEST_PATH}",
        "/bin/sh",
        "-c",
        "ls",
    ]


def test_proot_root_argv():
    argv = build_argv("proot", "proot", "/r", ["id"], root=True)
    assert argv[:6] == ["proot", "-R", "/r", "-w", "/root", "-0"]


def test_bwrap_argv():
    argv = build_argv("bwrap", "bwrap", "/r", ["id"], root=True, binds=["/src"])
    assert argv[:6] == ["bwrap", "--unshare-user", "--uid", "0", "--gid", "0"]
    i = argv.index("/r")
    assert argv[i - 1 : i + 2] == ["--bind", "/r", "/"]
    assert argv[-6:-3] == ["--bind", "/src", "/src"]
    assert argv[-1] == "id"


def test_bwrap_user_ids():
    argv = build_argv("bwrap", "bwrap", "/r", ["id"])
    assert argv[2:6] == ["--uid", str(os.getuid()), "--gid", str(os.getgid())]


def test_unknown_handler():
    with pytest.raises(ConfigError):
        build_argv("chroot", "chroot", "/r", ["id"])
    with pytest.raises(ConfigError):
        resolve_handler("chroot")


def test_resolve_from_path(monkeypatch):
    monkeypatch.setattr(sandbox_mod.shutil, "which", lambda name: f"/usr/bin/{name}")
    assert str(resolve_handler("proot")) == "/usr/bin/proot"


def test_resolve_from_local_bin(home, monkeypatch):
    monkeypatch.setattr(sandbox_mod.shutil, "which", lambda name: None)
    local = home / ".local" / "bin" / "bwrap"
    local.parent.mkdir(parents=True)
    local.write_text("")
    assert resolve_handler("bwrap") == local


def test_downloads_static_binary(home, monkeypatch):
    monkeypatch.setattr(sandbox_mod.shutil, "which", lambda name: None)
    monkeypatch.setattr(sandbox_mod.platform, "machine", lambda: "x86_64")
    session = FakeSession({sandbox_mod.STATIC_BINARY_URLS["proot"]: FakeResponse(b"\x7fELF")})

    path = resolve_handler("proot", session=session)

    assert path == home / ".local" / "bin" / "proot"
    assert path.read_bytes() == b"\x7fELF"
    assert stat.S_IMODE(path.stat().st_mode) == 0o755


def test_no_static_binary_for_other_arches(home, monkeypatch):
    monkeypatch.setattr(sandbox_mod.shutil, "which", lambda name: None)
    monkeypatch.setattr(sandbox_mod.platform, "machine", lambda: "aarch64")
    with pytest.raises(ExternalProcessError):
        resolve_handler("proot", session=FakeSession())


def test_sandbox_run_shell(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(sandbox_mod, "run_cmd", lambda argv, **kw: calls.append((argv, kw)))
    sb = Sandbox("proot", tmp_path)
    sb._binary = tmp_path / "proot"

    sb.run_shell("apk update", root=True)

    argv, kw = calls[0]
    assert argv[-3:] == ["/bin/sh", "-c", "apk update"]
    assert "-0" in argv
    assert kw == {"check": True, "capture": False}


def test_apk_command():
    assert apk_command("add", ["vim", "git"]) == "apk add vim git"
    assert apk_command("install", ["a b"]) == "apk add 'a b'"
    assert apk_command("remove", ["vim"]) == "apk del vim"
    assert apk_command("update", []) == "apk update; apk upgrade"
    assert apk_command("info", ["-v"]) == "apk info -v"
    assert apk_command("-s", ["vim"]) == "apk search vim"
    assert apk_command("-u", []) == "apk update; apk upgrade"


def test_write_repositories(tmp_path):
    p = write_repositories(tmp_path, "https://m/alpine/edge/main\n")
    assert p == tmp_path / "etc" / "apk" / "repositories"
    assert p.read_text() == "https://m/alpine/edge/main\n"


def test_run_cmd():
    assert run_cmd(["sh", "-c", "echo hi"]).stdout == "hi\n"
    assert run_cmd(["sh", "-c", "exit 3"], check=False).returncode == 3

    with pytest.raises(ExternalProcessError) as ei:
        run_cmd(["sh", "-c", "echo oops >&2; exit 2"])
    assert ei.value.returncode == 2
    assert "oops" in ei.value.message

    with pytest.raises(ExternalProcessError):
        run_cmd(["/nonexistent/binary"])


def test_arch_detection(monkeypatch):
    assert normalize_arch("AMD64") == "x86_64"
    assert normalize_arch("arm64") == "aarch64"
    assert normalize_arch("armv7l") == "armv7"
    monkeypatch.delenv("ARCH", raising=False)
    monkeypatch.setenv("ALPACK_ARCH", "riscv64")
    assert get_arch() == "riscv64"
    monkeypatch.delenv("ALPACK_ARCH")
    monkeypatch.setenv("ARCH", "x86")
    assert get_arch() == "x86"
