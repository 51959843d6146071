from __future__ import annotations

import logging
from pathlib import Path

from ..context import SetupContext
from ..errors import TargetExistsError
from ..lib.fsutil import can_write_into

logger = logging.getLogger(__name__)


def _nearest_existing(path: Path) -> Path:
    for candidate in [path, *path.parents]:
        if candidate.exists():
            return candidate
    return Path("/")


class ValidateTargetStep:
    step_id = "10_validate_target"

    def enabled(self, ctx: SetupContext) -> bool:
        return not ctx.reinstall

    def run(self, ctx: SetupContext) -> None:
        target = ctx.rootfs_dir
        if target.is_dir():
            raise TargetExistsError(str(target))

        # The rootfs will be created under the nearest existing ancestor.
        anchor = _nearest_existing(target.parent)
        if anchor.is_dir() and can_write_into(anchor):
            return

        logger.warning("Write access denied for '%s'. Falling back to the default location %s", target, ctx.default_rootfs)
        if ctx.default_rootfs.is_dir():
            raise TargetExistsError(str(ctx.default_rootfs))
