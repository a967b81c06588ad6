"""Narration-aware pauses between steps.

WHY: Narration for a step should finish just before that step's action
starts. The only place to make room for it is the pause after the
previous step, so that pause has to know how long the upcoming clip is.
The decision is purely predictive: durations come from pre-synthesis or
estimates, never from listening to audio while recording.

HOW: NarrationWaiter separates computing from sleeping.
plan_after_step() returns a WaitPlan from pacing, mode, buffer, and the
timing map; wait_after_step() logs according to the mode and sleeps for
the planned delay through the injected ``sleep`` coroutine (the engine
passes page.wait_for_timeout).

RULES:
- Lead-in for step i = timing[i].duration_ms + buffer_ms (0 in manual mode
  or when step i has no narration)
- manual: delay = base delay, narration ignored
- warn-only: delay = base delay; warn when base + settle < next lead-in
- auto-sync: delay = base + max(0, next lead-in - (base + settle))
- Before the first step, only auto-sync sleeps; warn-only just warns
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from demo_narrator.config import DEFAULT_NARRATION_BUFFER_MS, SyncMode
from demo_narrator.core.ir import NarrationTimingMap
from demo_narrator.spec.models import Pacing, Step, StepAction

logger = logging.getLogger(__name__)

_POST_CLICK_ACTIONS = frozenset({
    StepAction.CLICK,
    StepAction.HOVER,
    StepAction.SCROLL,
    StepAction.PRESS,
    StepAction.CHECK,
    StepAction.UNCHECK,
    StepAction.SELECT,
    StepAction.UPLOAD,
    StepAction.DRAG_AND_DROP,
    StepAction.BACK,
    StepAction.FORWARD,
})


@dataclass(frozen=True)
class WaitPlan:
    """Outcome of one post-step scheduling decision."""

    delay_ms: float
    base_delay_ms: float
    required_lead_in_ms: float = 0
    shortfall_ms: float = 0


class NarrationWaiter:
    """Computes and performs the pause after each step.

    Args:
        pacing: Pacing defaults (post-step delays, settle delay).
        mode: Narration synchronization mode.
        buffer_ms: Silence kept between a clip's end and its action.
        timing: Narration durations keyed by flattened step index.
        total_steps: Number of steps across all chapters.
        sleep: Coroutine function sleeping for a number of milliseconds.
    """

    def __init__(
        self,
        pacing: Pacing,
        sleep: Callable[[float], Awaitable[None]],
        mode: SyncMode = SyncMode.MANUAL,
        buffer_ms: float = DEFAULT_NARRATION_BUFFER_MS,
        timing: NarrationTimingMap | None = None,
        total_steps: int = 0,
    ) -> None:
        self.pacing = pacing
        self.mode = mode
        self.buffer_ms = buffer_ms
        self.timing = timing or {}
        self.total_steps = total_steps
        self._sleep = sleep

    def required_lead_in(self, step_index: int) -> float:
        if self.mode is SyncMode.MANUAL:
            return 0
        entry = self.timing.get(step_index)
        if entry is None:
            return 0
        return entry.duration_ms + self.buffer_ms

    def base_delay(self, step: Step) -> float:
        override = step.delay
        if override is not None and math.isfinite(override) and override >= 0:
            return override
        kind = step.kind
        if kind is StepAction.NAVIGATE:
            return self.pacing.post_navigate_delay_ms
        if kind is StepAction.TYPE:
            return self.pacing.post_type_delay_ms
        if kind in _POST_CLICK_ACTIONS:
            return self.pacing.post_click_delay_ms
        return 0

    def plan_after_step(self, step_index: int, step: Step) -> WaitPlan:
        base = self.base_delay(step)
        next_index = step_index + 1
        lead_in = self.required_lead_in(next_index) if next_index < self.total_steps else 0
        available = base + self.pacing.settle_delay_ms
        shortfall = max(0, lead_in - available)

        if self.mode is SyncMode.AUTO_SYNC:
            return WaitPlan(base + shortfall, base, lead_in, shortfall)
        if self.mode is SyncMode.WARN_ONLY:
            return WaitPlan(base, base, lead_in, shortfall)
        return WaitPlan(base, base)

    async def wait_after_step(self, step_index: int, step: Step) -> WaitPlan:
        plan = self.plan_after_step(step_index, step)

        if self.mode is SyncMode.WARN_ONLY and plan.shortfall_ms > 0:
            logger.warning(
                "Narration timing warning: next step %d needs %dms lead-in but "
                "current delay is %dms",
                step_index + 1,
                plan.required_lead_in_ms,
                plan.base_delay_ms + self.pacing.settle_delay_ms,
            )
        elif self.mode is SyncMode.AUTO_SYNC and plan.shortfall_ms > 0:
            logger.info(
                "Auto-sync: extended delay after step %d from %dms to %dms "
                "for next step narration",
                step_index,
                plan.base_delay_ms,
                plan.delay_ms,
            )

        if plan.delay_ms > 0:
            await self._sleep(plan.delay_ms)
        return plan

    async def maybe_wait_before_first_step(self) -> float:
        """Give step 0's narration room before anything happens.

        Returns:
            Milliseconds slept (0 unless auto-sync and step 0 is narrated).
        """
        if self.total_steps == 0:
            return 0
        lead_in = self.required_lead_in(0)
        if lead_in <= 0:
            return 0

        if self.mode is SyncMode.WARN_ONLY:
            logger.warning(
                "Narration timing warning: step 0 needs %dms lead-in "
                "but there is no pre-step delay in warn-only mode",
                lead_in,
            )
            return 0

        logger.info("Auto-sync: waiting %dms before first step for narration", lead_in)
        await self._sleep(lead_in)
        return lead_in
