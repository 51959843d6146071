from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional, Tuple

from ..errors import FilesystemError

logger = logging.getLogger(__name__)


def _mkdir_parents(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def resolve_primary_or_fallback(
    path: str | Path,
    fallback: str | Path,
    *,
    mkdir: Optional[Callable[[Path], None]] = None,
) -> Tuple[Path, bool]:
    """Create ``path``; on permission denial create ``fallback`` instead.

    Returns (resolved_dir, used_fallback). The primary path is tried exactly
    once. Any other creation error, or a failing fallback, is fatal.
    """

    if mkdir is None:
        mkdir = _mkdir_parents
    primary = Path(path)
    try:
        mkdir(primary)
        return primary, False
    except PermissionError:
        logger.warning("Permission denied to create '%s', using default directory %s instead", primary, fallback)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory {primary}: {e}") from e

    alt = Path(fallback)
    try:
        mkdir(alt)
    except OSError as e:
        raise FilesystemError(f"Cannot create fallback directory {alt}: {e}") from e
    return alt, True


def can_write_into(directory: Path) -> bool:
    """Probe whether files can be created inside ``directory``."""

    probe = directory / ".permission_test"
    try:
        probe.touch()
        probe.unlink()
    except OSError:
        return False
    return True


def remove_tree(path: str | Path) -> bool:
    """Best-effort recursive delete; returns False (with a warning) on failure."""

    p = Path(path)
    if not p.exists():
        return True
    try:
        shutil.rmtree(p)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", p, e)
        return False
    logger.info("Removed %s", p)
    return True
