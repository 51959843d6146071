from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Sequence

from ..errors import FilesystemError
from .sandbox import Sandbox

logger = logging.getLogger(__name__)

TOOLCHAIN_PACKAGES = ["alpine-sdk", "autoconf", "automake", "cmake", "go"]

# Shortcut subcommands and the apk invocation they stand for.
APK_ALIASES = {
    "add": "apk add",
    "install": "apk add",
    "del": "apk del",
    "remove": "apk del",
    "update": "apk update; apk upgrade",
    "search": "apk search",
    "fix": "apk fix",
    "-s": "apk search",
    "-u": "apk update; apk upgrade",
}


def write_repositories(rootfs: str | Path, manifest: str) -> Path:
    """Write /etc/apk/repositories inside the rootfs."""

    p = Path(rootfs) / "etc/apk/repositories"
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(manifest, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot write {p}: {e}") from e
    logger.info("Configured apk repositories in %s", p)
    return p


def apk_update(sandbox: Sandbox) -> None:
    sandbox.run_shell("apk update", root=True)


def apk_add(sandbox: Sandbox, packages: Sequence[str]) -> None:
    if not packages:
        return
    sandbox.run_shell("apk add " + " ".join(shlex.quote(p) for p in packages), root=True)


def apk_command(subcommand: str, args: Sequence[str]) -> str:
    """Shell command line for ``alpack apk <subcommand> ARGS``."""

    base = APK_ALIASES.get(subcommand, f"apk {shlex.quote(subcommand)}")
    if not args:
        return base
    return f"{base} {' '.join(shlex.quote(a) for a in args)}"
