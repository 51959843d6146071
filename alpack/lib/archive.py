from __future__ import annotations

import gzip
import io
import logging
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path

from tqdm import tqdm

from ..errors import ArchiveError
from .fsutil import resolve_primary_or_fallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractResult:
    dest_dir: Path
    used_fallback: bool
    members: int


def extract_tarball(
    archive: str | Path,
    dest_dir: str | Path,
    *,
    fallback_dir: str | Path,
    progress: bool = True,
) -> ExtractResult:
    """Unpack a .tar.gz into ``dest_dir`` (or the fallback on permission denial).

    The gzip layer is decompressed fully into memory before the tar stream is
    read; minirootfs images are a few MiB. Only the tarfile "tar" filter is
    applied: the archive comes from the configured mirror and its absolute
    symlinks (bin/sh -> /bin/busybox) must be kept.
    """

    save_dir, used_fallback = resolve_primary_or_fallback(dest_dir, fallback_dir)

    try:
        data = gzip.decompress(Path(archive).read_bytes())
    except (OSError, EOFError, zlib.error) as e:
        raise ArchiveError(f"Failed to decompress {archive}: {e}") from e

    logger.info("Extracting %s -> %s", archive, save_dir)
    members = 0
    try:
        with tqdm.wrapattr(
            io.BytesIO(data),
            "read",
            total=len(data),
            desc="Extracting",
            unit="B",
            unit_scale=True,
            disable=not progress,
        ) as reader:
            with tarfile.open(fileobj=reader, mode="r|") as tar:
                for member in tar:
                    tar.extract(member, path=save_dir, filter="tar")
                    members += 1
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"Failed to extract {archive}: {e}") from e

    logger.info("Extracted %d entries into %s", members, save_dir)
    return ExtractResult(dest_dir=save_dir, used_fallback=used_fallback, members=members)
