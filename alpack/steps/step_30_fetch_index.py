from __future__ import annotations

from ..context import SetupContext
from ..lib.fetch import fetch_text


class FetchIndexStep:
    step_id = "30_fetch_index"

    def run(self, ctx: SetupContext) -> None:
        assert ctx.mirror is not None
        ctx.index_html = fetch_text(ctx.mirror.index_url(), session=ctx.session)
