from __future__ import annotations

from ..context import SetupContext
from ..lib.apk import write_repositories


class WriteRepositoriesStep:
    step_id = "70_write_repositories"

    def run(self, ctx: SetupContext) -> None:
        assert ctx.mirror is not None and ctx.installed_rootfs is not None
        write_repositories(ctx.installed_rootfs, ctx.mirror.repository_manifest())
