from __future__ import annotations

from ..context import SetupContext
from ..lib.apk import apk_update


class BootstrapIndexStep:
    step_id = "80_bootstrap_index"

    def run(self, ctx: SetupContext) -> None:
        apk_update(ctx.get_sandbox())
