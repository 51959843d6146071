from __future__ import annotations

import errno
import io
import logging
import tarfile
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Union

import pytest
import requests

MIRROR = "https://mirror.test/alpine/"
INDEX_URL = MIRROR + "latest-stable/releases/x86_64/"
ARCHIVE = "alpine-minirootfs-3.19.2-x86_64.tar.gz"

INDEX_HTML = f"""<html><head><title>Index of /alpine/latest-stable/releases/x86_64/</title></head>
<body><pre>
<a href="../">../</a>
<a href="alpine-minirootfs-3.18.0-x86_64.tar.gz">alpine-minirootfs-3.18.0-x86_64.tar.gz</a>
<a href="{ARCHIVE}">{ARCHIVE}</a>
<a href="{ARCHIVE}.sha256">{ARCHIVE}.sha256</a>
<a href="other-file.tar.gz">other-file.tar.gz</a>
</pre></body></html>
"""


class FakeResponse:
    def __init__(
        self,
        body: bytes = b"",
        *,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        content_length: bool = True,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.headers = dict(headers or {})
        if content_length and "Content-Length" not in self.headers:
            self.headers["Content-Length"] = str(len(body))

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i : i + chunk_size]

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


Route = Union[FakeResponse, Callable[..., FakeResponse]]


class FakeSession:
    """Stands in for requests.Session; unknown URLs fail like a dead host."""

    def __init__(self, routes: Optional[Dict[str, Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if callable(route):
            return route(**kwargs)
        return route


class FakeSandbox:
    def __init__(self) -> None:
        self.commands: List[str] = []

    def run_shell(self, command: str, *, root: bool = False, check: bool = True):
        self.commands.append(command)


def make_rootfs_tarball() -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for d in ("bin", "etc", "etc/apk"):
            info = tarfile.TarInfo(d)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)

        data = b"3.19.2\n"
        info = tarfile.TarInfo("etc/alpine-release")
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))

        data = b"#!/bin/busybox\n"
        info = tarfile.TarInfo("bin/busybox")
        info.size = len(data)
        info.mode = 0o755
        tar.addfile(info, io.BytesIO(data))

        link = tarfile.TarInfo("bin/sh")
        link.type = tarfile.SYMTYPE
        link.linkname = "/bin/busybox"
        tar.addfile(link)
    return buf.getvalue()


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    monkeypatch.setenv("HOME", str(h))
    for var in ("ALPACK_ARCH", "ALPACK_ROOTFS", "ALPACK_CACHE", "ALPACK_CONFIG", "ARCH"):
        monkeypatch.delenv(var, raising=False)
    return h


@pytest.fixture
def rootfs_tarball() -> bytes:
    return make_rootfs_tarball()


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    level = root.level
    yield
    # pytest's capture handlers are subclasses; only drop the plain ones main() adds.
    for h in list(root.handlers):
        if type(h) in (logging.FileHandler, logging.StreamHandler):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_alpack_configured", "_alpack_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)


@pytest.fixture
def deny_mkdir(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Directory creation fails with EACCES for paths added to ``denied``."""

    state = SimpleNamespace(denied=set(), attempts=[])

    def mkdir(path: Path) -> None:
        state.attempts.append(path)
        if path in state.denied:
            raise PermissionError(errno.EACCES, "Permission denied", str(path))
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setattr("alpack.lib.fsutil._mkdir_parents", mkdir)
    return state
