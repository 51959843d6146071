from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from tqdm import tqdm

from ..errors import FilesystemError, NetworkError
from .fsutil import resolve_primary_or_fallback

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FetchResult:
    dest_dir: Path
    path: Path
    cached: bool
    used_fallback: bool


def _session(session: Optional[requests.Session]) -> requests.Session:
    return session if session is not None else requests.Session()


def fetch_text(url: str, *, session: Optional[requests.Session] = None, timeout: int = DEFAULT_TIMEOUT) -> str:
    logger.info("Fetching index %s", url)
    try:
        r = _session(session).get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e
    return r.text


def _content_length(r: requests.Response, url: str) -> int:
    raw = r.headers.get("Content-Length")
    if raw is None:
        raise NetworkError(f"Response for {url} has no Content-Length header")
    try:
        length = int(raw)
    except ValueError as e:
        raise NetworkError(f"Response for {url} has invalid Content-Length {raw!r}") from e
    if length < 0:
        raise NetworkError(f"Response for {url} has invalid Content-Length {raw!r}")
    return length


def fetch_file(
    url: str,
    dest_dir: str | Path,
    filename: str,
    *,
    fallback_dir: str | Path,
    session: Optional[requests.Session] = None,
    progress: bool = True,
    timeout: int = DEFAULT_TIMEOUT,
) -> FetchResult:
    """Download ``url`` to ``dest_dir/filename`` unless it is already there.

    - An existing file is a cache hit: no request is made and the file is
      not verified.
    - The body goes to ``<filename>.part`` first and is renamed on success;
      a leftover ``.part`` is resumed with a Range request.
    - The server must send Content-Length.
    """

    save_dir, used_fallback = resolve_primary_or_fallback(dest_dir, fallback_dir)
    target = save_dir / filename

    if target.exists():
        logger.info("File '%s' already exists, skipping download", filename)
        return FetchResult(dest_dir=save_dir, path=target, cached=True, used_fallback=used_fallback)

    part = target.with_name(target.name + ".part")
    offset = part.stat().st_size if part.exists() else 0
    headers = {"Range": f"bytes={offset}-"} if offset else {}

    logger.info("Saving file to: %s", target)
    sess = _session(session)
    try:
        with sess.get(url, stream=True, timeout=timeout, headers=headers) as r:
            if r.status_code == 416:
                if not offset:
                    raise NetworkError(f"Server rejected download of {url} (416 without a range request)")
                # Range not satisfiable; the partial file is stale.
                part.unlink(missing_ok=True)
                return fetch_file(
                    url,
                    save_dir,
                    filename,
                    fallback_dir=fallback_dir,
                    session=sess,
                    progress=progress,
                    timeout=timeout,
                )
            r.raise_for_status()
            if offset and r.status_code != 206:
                logger.info("Server ignored range request; restarting %s", filename)
                offset = 0

            total = _content_length(r, url) + offset
            mode = "ab" if offset else "wb"
            with open(part, mode) as f, tqdm(
                total=total,
                initial=offset,
                unit="B",
                unit_scale=True,
                desc="Downloading",
                disable=not progress,
            ) as bar:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    bar.update(len(chunk))
    except requests.RequestException as e:
        raise NetworkError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Failed to write {part}: {e}") from e

    try:
        os.replace(part, target)
    except OSError as e:
        raise FilesystemError(f"Failed to move {part} to {target}: {e}") from e

    logger.info("Downloaded %s", target)
    return FetchResult(dest_dir=save_dir, path=target, cached=False, used_fallback=used_fallback)
