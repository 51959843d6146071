from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .context import SetupContext

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step.

    Steps may also define ``enabled(ctx) -> bool``; a disabled step is
    recorded as skipped.
    """

    step_id: str

    def run(self, ctx: SetupContext) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]


def _is_enabled(step: Step, ctx: SetupContext) -> bool:
    enabled = getattr(step, "enabled", None)
    return True if enabled is None else bool(enabled(ctx))


def run_pipeline(*, ctx: SetupContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; the first exception aborts the run."""

    ran: List[str] = []
    skipped: List[str] = []

    for step in steps:
        ctx.current_step = step.step_id

        if not _is_enabled(step, ctx):
            logger.info("Skipping step %s", step.step_id)
            skipped.append(step.step_id)
            continue

        logger.info("Running step %s", step.step_id)
        step.run(ctx)
        ran.append(step.step_id)

    ctx.current_step = None
    return PipelineResult(ran_steps=ran, skipped_steps=skipped)
