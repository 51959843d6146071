from __future__ import annotations

from ..context import SetupContext
from ..errors import NoMatchingRootfsError
from ..lib.versions import select_latest


class SelectVersionStep:
    step_id = "40_select_version"

    def run(self, ctx: SetupContext) -> None:
        assert ctx.mirror is not None and ctx.index_html is not None
        candidate = select_latest(ctx.index_html, ctx.mirror.arch)
        if candidate is None:
            raise NoMatchingRootfsError(ctx.mirror.arch, ctx.mirror.index_url())

        ctx.candidate = candidate
        ctx.echo(f"Latest version found: {candidate.version}")
        ctx.echo(f"Link: {ctx.mirror.index_url()}{candidate.href}")
