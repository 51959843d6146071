from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path

DEFAULT_MIRROR = "https://dl-cdn.alpinelinux.org/alpine/"
NO_CACHE_DIRNAME = "ALPack_cache"


def normalize_arch(machine: str) -> str:
    """Map host machine names onto the names Alpine uses in release paths."""

    m = machine.lower()
    return {
        "x86_64": "x86_64",
        "amd64": "x86_64",
        "aarch64": "aarch64",
        "arm64": "aarch64",
        "armv7l": "armv7",
        "armv7": "armv7",
        "armv6l": "armhf",
        "i386": "x86",
        "i686": "x86",
        "ppc64le": "ppc64le",
        "s390x": "s390x",
        "riscv64": "riscv64",
        "loongarch64": "loongarch64",
    }.get(m, m)


def get_arch() -> str:
    """ALPACK_ARCH, then ARCH, then the host machine."""

    return os.environ.get("ALPACK_ARCH") or os.environ.get("ARCH") or normalize_arch(platform.machine())


def home_dir() -> Path:
    home = os.environ.get("HOME")
    return Path(home) if home else Path.home()


def no_cache_dir() -> Path:
    return Path(tempfile.gettempdir()) / NO_CACHE_DIRNAME


def local_bin_dir() -> Path:
    return home_dir() / ".local" / "bin"
