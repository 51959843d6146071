from __future__ import annotations

from ..context import SetupContext
from ..lib.fetch import fetch_file


class DownloadStep:
    step_id = "50_download"

    def run(self, ctx: SetupContext) -> None:
        assert ctx.mirror is not None and ctx.candidate is not None
        href = ctx.candidate.href
        result = fetch_file(
            f"{ctx.mirror.index_url()}{href}",
            ctx.cache_dir,
            href,
            fallback_dir=ctx.default_rootfs,
            session=ctx.session,
            progress=ctx.progress,
        )
        if result.used_fallback:
            ctx.fallbacks.append(f"cache:{result.dest_dir}")
        ctx.archive_path = result.path
