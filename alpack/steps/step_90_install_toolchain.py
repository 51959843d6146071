from __future__ import annotations

import logging

from ..context import SetupContext
from ..lib.apk import TOOLCHAIN_PACKAGES, apk_add

logger = logging.getLogger(__name__)


class InstallToolchainStep:
    step_id = "90_install_toolchain"

    def enabled(self, ctx: SetupContext) -> bool:
        # --minimal stops at a bare rootfs with a package index.
        return not ctx.minimal

    def run(self, ctx: SetupContext) -> None:
        apk_add(ctx.get_sandbox(), TOOLCHAIN_PACKAGES)
        logger.info("Toolchain installed in %s", ctx.installed_rootfs)
