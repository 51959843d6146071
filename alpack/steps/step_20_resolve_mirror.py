from __future__ import annotations

import logging

from ..context import SetupContext
from ..lib.mirror import resolve_mirror

logger = logging.getLogger(__name__)


class ResolveMirrorStep:
    step_id = "20_resolve_mirror"

    def run(self, ctx: SetupContext) -> None:
        ctx.mirror = resolve_mirror(
            ctx.settings,
            mirror=ctx.mirror_override,
            release="edge" if ctx.edge else None,
        )
        logger.info(
            "Mirror %s release=%s arch=%s", ctx.mirror.base_url, ctx.mirror.release, ctx.mirror.arch
        )
