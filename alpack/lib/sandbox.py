from __future__ import annotations

import logging
import os
import platform
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

import requests

from ..errors import ConfigError, ExternalProcessError
from .command import CmdResult, run_cmd
from .env import local_bin_dir, normalize_arch
from .fetch import fetch_file

logger = logging.getLogger(__name__)

STATIC_BINARY_URLS = {
    "proot": "https://github.com/LinuxDicasPro/StaticHub/releases/download/proot/proot",
    "bwrap": "https://github.com/LinuxDicasPro/StaticHub/releases/download/bwrap/bwrap",
}

GUEST_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


def resolve_handler(handler: str, *, session: Optional[requests.Session] = None) -> Path:
    """Find the sandbox handler binary, downloading a static build if needed.

    Lookup order: PATH, ~/.local/bin, then (x86_64 hosts only) the static
    binary release.
    """

    if handler not in STATIC_BINARY_URLS:
        raise ConfigError(f"Unknown sandbox handler {handler!r}", hint="Use 'proot' or 'bwrap'.")

    found = shutil.which(handler)
    if found:
        return Path(found)

    bin_dir = local_bin_dir()
    local = bin_dir / handler
    if local.exists():
        return local

    if normalize_arch(platform.machine()) != "x86_64":
        raise ExternalProcessError(
            f"{handler} not found in the system and no binary is available for this architecture"
        )

    logger.warning("%s not found, downloading a static build into %s", handler, bin_dir)
    result = fetch_file(STATIC_BINARY_URLS[handler], bin_dir, handler, fallback_dir=bin_dir, session=session)
    os.chmod(result.path, 0o755)
    return result.path


def build_argv(
    handler: str,
    binary: str | Path,
    rootfs: str | Path,
    argv: Sequence[str],
    *,
    root: bool = False,
    binds: Sequence[str] = (),
) -> List[str]:
    """Command line that runs ``argv`` inside ``rootfs`` with the given handler."""

    rootfs = str(rootfs)
    if handler == "proot":
        out = [str(binary), "-R", rootfs, "-w", "/root" if root else "/"]
        if root:
            out.append("-0")
        for b in binds:
            out += ["-b", b]
    elif handler == "bwrap":
        uid, gid = ("0", "0") if root else (str(os.getuid()), str(os.getgid()))
        out = [
            str(binary),
            "--unshare-user",
            "--uid",
            uid,
            "--gid",
            gid,
            "--bind",
            rootfs,
            "/",
            "--dev",
            "/dev",
            "--proc",
            "/proc",
            "--tmpfs",
            "/tmp",
            "--ro-bind",
            "/etc/resolv.conf",
            "/etc/resolv.conf",
        ]
        for b in binds:
            src, _, dst = b.partition(":")
            out += ["--bind", src, dst or src]
    else:
        raise ConfigError(f"Unknown sandbox handler {handler!r}", hint="Use 'proot' or 'bwrap'.")

    return [*out, "/usr/bin/env", f"PATH={GUEST_PATH}", *argv]


def shell_argv(command: str) -> List[str]:
    return ["/bin/sh", "-c", command]


class Sandbox:
    """Runs commands inside a rootfs through proot or bwrap."""

    def __init__(self, handler: str, rootfs: str | Path, *, session: Optional[requests.Session] = None) -> None:
        self.handler = handler
        self.rootfs = Path(rootfs)
        self._session = session
        self._binary: Optional[Path] = None

    @property
    def binary(self) -> Path:
        if self._binary is None:
            self._binary = resolve_handler(self.handler, session=self._session)
        return self._binary

    def run(
        self,
        argv: Sequence[str],
        *,
        root: bool = False,
        binds: Sequence[str] = (),
        check: bool = True,
    ) -> CmdResult:
        full = build_argv(self.handler, self.binary, self.rootfs, argv, root=root, binds=binds)
        return run_cmd(full, check=check, capture=False)

    def run_shell(self, command: str, *, root: bool = False, check: bool = True) -> CmdResult:
        return self.run(shell_argv(command), root=root, check=check)
