from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .lib.env import home_dir


def default_log_path() -> str:
    return str(home_dir() / ".cache" / "ALPack" / "alpack.log")


def configure_logging(
    log_path: Optional[str] = None,
    console_level: int = logging.WARNING,
    also_console: bool = True,
) -> str:
    """Configure logging.

    Everything (DEBUG and up) goes to the log file; the console on stderr only
    shows ``console_level`` and up so that warnings such as a permission
    fallback are always visible.

    Notes:
    - The log lives next to the download cache. If that directory cannot be
      created we fall back to a file in the working directory.

    Returns the actual file path being used.
    """

    requested = log_path or default_log_path()

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_alpack_configured", False):
        return getattr(logger, "_alpack_log_path", requested)

    chosen_path = requested
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        Path(os.path.dirname(requested) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(requested)
    except OSError:
        chosen_path = str(Path.cwd() / "alpack.log")
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(fmt)
    file_handler.setLevel(logging.DEBUG)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        console.setLevel(console_level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_alpack_configured", True)
    setattr(logger, "_alpack_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (requested=%s, actual=%s)", requested, chosen_path
    )
    return chosen_path


def verbosity_to_level(verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
