"""Playback engine: runs every step of a demo in order against one page.

WHY: A demo is only reproducible if steps run strictly in document
order, each one leaving behind an ActionEvent, with narration-aware
pauses in between. When a step fails, the caller needs to know exactly
which one, in which chapter, against which target, and what had already
been recorded. A bare driver timeout is useless for a forty-step demo.

HOW: PlaybackEngine owns the per-run state (cursor position, event
list) as instance/local state, never module globals. execute() injects
overlays, lets the NarrationWaiter hold for step 0's lead-in, then walks
the flattened step list: execute_step → on_step_complete callback →
narration wait → settle delay. Any failure other than the callback's is
wrapped once in PlaybackStepError and re-raised.

RULES:
- Overlays: redaction always, cursor only when pacing is configured
- on_step_complete errors propagate unwrapped and abort the run
- The error carries a copy of the events, never the live list
- Without pacing, NO_PACING applies (no cursor animation, no delays)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from playwright.async_api import Page

from demo_narrator.config import DEFAULT_NARRATION_BUFFER_MS, SyncMode
from demo_narrator.core.indexing import FlatStep, count_steps, iter_flat_steps
from demo_narrator.core.ir import ActionEvent, BoundingBox, NarrationTimingMap
from demo_narrator.playback.actions import PlaybackContext, now_ms
from demo_narrator.playback.errors import PlaybackStepError
from demo_narrator.playback.handlers import execute_step
from demo_narrator.playback.overlays import apply_redaction, inject_cursor
from demo_narrator.playback.targets import describe_step_target
from demo_narrator.playback.visuals import EASE_P1, EASE_P2, MOVE_CURSOR_SCRIPT, run_effect
from demo_narrator.playback.waiter import NarrationWaiter
from demo_narrator.spec.models import NO_PACING, Chapter, Pacing

logger = logging.getLogger(__name__)


@dataclass
class NarrationSync:
    """Narration timing handed to the engine for pacing decisions."""

    mode: SyncMode = SyncMode.MANUAL
    buffer_ms: float = DEFAULT_NARRATION_BUFFER_MS
    timing: NarrationTimingMap = field(default_factory=dict)


@dataclass
class PlaybackOptions:
    base_url: str = ""
    spec_dir: Path | None = None
    screenshot_dir: Path | None = None
    pacing: Pacing | None = None
    redaction_selectors: Sequence[str] = field(default_factory=tuple)
    secret_patterns: Sequence[str] = field(default_factory=tuple)
    on_step_complete: Callable[[ActionEvent], Awaitable[None]] | None = None
    narration: NarrationSync | None = None


@dataclass
class PlaybackResult:
    events: list[ActionEvent]
    duration_ms: int
    start_timestamp: int


class PlaybackEngine:
    """Drives one page through a list of chapters.

    One instance per run: the cursor position lives on the instance and
    the event list lives inside execute(), so independent runs never
    share state.
    """

    def __init__(self, page: Page, options: PlaybackOptions | None = None) -> None:
        self.page = page
        self.options = options or PlaybackOptions()
        self.pacing = self.options.pacing or NO_PACING
        self.cursor_position: tuple[float, float] = (0.0, 0.0)

    # ------------------------------------------------------------------
    # Overlays and cursor
    # ------------------------------------------------------------------

    async def inject_overlays(self) -> None:
        await apply_redaction(self.page, self.options.redaction_selectors)
        if self.options.pacing is not None:
            await inject_cursor(self.page)

    async def move_cursor_to(self, box: BoundingBox | None) -> None:
        """Animate the overlay cursor to the centre of ``box``."""
        duration = self.pacing.cursor_duration_ms
        if box is None or duration <= 0:
            return
        to_x, to_y = box.center
        from_x, from_y = self.cursor_position
        await run_effect(
            "cursor",
            self.page.evaluate(
                MOVE_CURSOR_SCRIPT,
                {
                    "fromX": from_x,
                    "fromY": from_y,
                    "toX": to_x,
                    "toY": to_y,
                    "duration": duration,
                    "p1": EASE_P1,
                    "p2": EASE_P2,
                },
            ),
        )
        await self.page.wait_for_timeout(duration)
        self.cursor_position = (to_x, to_y)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _build_waiter(self, total_steps: int) -> NarrationWaiter:
        sync = self.options.narration or NarrationSync()
        return NarrationWaiter(
            self.pacing,
            sleep=self.page.wait_for_timeout,
            mode=sync.mode,
            buffer_ms=sync.buffer_ms,
            timing=sync.timing,
            total_steps=total_steps,
        )

    def _build_context(self) -> PlaybackContext:
        return PlaybackContext(
            page=self.page,
            pacing=self.pacing,
            move_cursor_to=self.move_cursor_to,
            reinject_overlays=self.inject_overlays,
            base_url=self.options.base_url,
            spec_dir=self.options.spec_dir,
            screenshot_dir=self.options.screenshot_dir,
            secret_patterns=self.options.secret_patterns,
        )

    async def execute(self, chapters: Sequence[Chapter]) -> PlaybackResult:
        """Run every step of every chapter in document order.

        Returns:
            PlaybackResult with one event per step, in order.

        Raises:
            PlaybackStepError: a step (or its pacing wait) failed.
        """
        start_timestamp = now_ms()
        events: list[ActionEvent] = []
        self.cursor_position = (0.0, 0.0)
        waiter = self._build_waiter(count_steps(chapters))
        ctx = self._build_context()

        await self.inject_overlays()
        await waiter.maybe_wait_before_first_step()

        current_chapter = -1
        for flat in iter_flat_steps(chapters):
            if flat.chapter_index != current_chapter:
                current_chapter = flat.chapter_index
                logger.info("Starting chapter: %s", flat.chapter_title)
            await self._run_step(ctx, waiter, flat, events, start_timestamp)

        return PlaybackResult(
            events=events,
            duration_ms=now_ms() - start_timestamp,
            start_timestamp=start_timestamp,
        )

    async def _run_step(
        self,
        ctx: PlaybackContext,
        waiter: NarrationWaiter,
        flat: FlatStep,
        events: list[ActionEvent],
        start_timestamp: int,
    ) -> None:
        step = flat.step
        descriptor = describe_step_target(step)

        def failure(err: Exception) -> PlaybackStepError:
            return PlaybackStepError(
                step_index=flat.index,
                chapter_title=flat.chapter_title,
                step=step,
                selector=descriptor,
                events=events,
                start_timestamp=start_timestamp,
                cause=err,
            )

        try:
            event = await execute_step(ctx, step)
        except Exception as err:
            raise failure(err) from err
        events.append(event)

        if self.options.on_step_complete is not None:
            await self.options.on_step_complete(event)

        try:
            await waiter.wait_after_step(flat.index, step)
            if self.pacing.settle_delay_ms > 0:
                await self.page.wait_for_timeout(self.pacing.settle_delay_ms)
        except Exception as err:
            raise failure(err) from err
