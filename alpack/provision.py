from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import requests

from .context import SetupContext
from .lib.env import no_cache_dir
from .lib.fsutil import remove_tree
from .lib.sandbox import Sandbox
from .pipeline import PipelineResult, run_pipeline
from .settings import Settings
from .steps import (
    BootstrapIndexStep,
    DownloadStep,
    ExtractStep,
    FetchIndexStep,
    InstallToolchainStep,
    ResolveMirrorStep,
    SelectVersionStep,
    ValidateTargetStep,
    WriteRepositoriesStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        ValidateTargetStep(),
        ResolveMirrorStep(),
        FetchIndexStep(),
        SelectVersionStep(),
        DownloadStep(),
        ExtractStep(),
        WriteRepositoriesStep(),
        BootstrapIndexStep(),
        InstallToolchainStep(),
    ]


def make_context(
    settings: Settings,
    *,
    rootfs: Optional[str] = None,
    cache: Optional[str] = None,
    mirror: Optional[str] = None,
    no_cache: bool = False,
    reinstall: bool = False,
    edge: bool = False,
    minimal: bool = False,
    progress: bool = True,
    session: Optional[requests.Session] = None,
    sandbox: Optional[Sandbox] = None,
    echo: Callable[[str], None] = print,
) -> SetupContext:
    default_rootfs = Path(settings.resolved_rootfs())
    cache_dir = no_cache_dir() if no_cache else Path(cache or settings.resolved_cache_dir())
    return SetupContext(
        settings=settings,
        rootfs_dir=Path(rootfs) if rootfs else default_rootfs,
        default_rootfs=default_rootfs,
        cache_dir=cache_dir,
        mirror_override=mirror or None,
        edge=edge,
        no_cache=no_cache,
        reinstall=reinstall,
        minimal=minimal,
        progress=progress,
        session=session,
        sandbox=sandbox,
        echo=echo,
    )


def run_setup(ctx: SetupContext) -> PipelineResult:
    """Provision a rootfs end to end.

    In no-cache mode the temporary cache is removed right after extraction;
    the finally block covers runs that abort before or after that point.
    """

    try:
        result = run_pipeline(ctx=ctx, steps=build_steps())
    except Exception:
        # File log only; main() renders the user-facing message.
        logger.debug("Setup failed at step %s", ctx.current_step, exc_info=True)
        raise
    finally:
        if ctx.no_cache:
            remove_tree(ctx.cache_dir)

    logger.info(
        "Setup finished (rootfs=%s ran=%s skipped=%s)",
        ctx.installed_rootfs,
        ",".join(result.ran_steps),
        ",".join(result.skipped_steps) or "-",
    )
    return result
