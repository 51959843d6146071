from __future__ import annotations

from ..context import SetupContext
from ..lib.archive import extract_tarball
from ..lib.fsutil import remove_tree


class ExtractStep:
    step_id = "60_extract"

    def run(self, ctx: SetupContext) -> None:
        assert ctx.archive_path is not None
        result = extract_tarball(
            ctx.archive_path,
            ctx.rootfs_dir,
            fallback_dir=ctx.default_rootfs,
            progress=ctx.progress,
        )
        if result.used_fallback:
            ctx.fallbacks.append(f"rootfs:{result.dest_dir}")
        ctx.installed_rootfs = result.dest_dir

        if ctx.no_cache:
            remove_tree(ctx.cache_dir)
