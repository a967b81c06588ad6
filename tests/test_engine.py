"""Tests for PlaybackEngine sequencing, error wrapping, and overlays.

WHY: The engine is where ordering, callback propagation, and the
structured step error come together. These tests run whole chapter
lists against the fake page to pin that behaviour down.

RULES:
- Pacing is NO_PACING unless a test needs delays or the cursor
- Failures are injected through the fake locator's side_effect
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, call

import pytest
from playwright.async_api import Error as PlaywrightError

from demo_narrator.config import SyncMode
from demo_narrator.core.ir import NarrationTimingEntry
from demo_narrator.playback import NarrationSync, PlaybackEngine, PlaybackOptions, PlaybackStepError
from demo_narrator.playback.visuals import ENSURE_CURSOR_SCRIPT, MOVE_CURSOR_SCRIPT
from demo_narrator.spec.models import NO_PACING, Pacing


def play(page, chapters, **options):
    engine = PlaybackEngine(page, PlaybackOptions(**options))
    return engine, asyncio.run(engine.execute(chapters))


class TestSequencing:
    def test_one_event_per_step_in_order(self, fake_page, two_step_spec):
        _, result = play(fake_page, two_step_spec.chapters)
        assert [e.action for e in result.events] == ["navigate", "click"]
        assert result.events[1].selector == "#btn"
        assert result.duration_ms >= 0

    def test_callback_sees_each_event(self, fake_page, two_step_spec):
        callback = AsyncMock()
        _, result = play(fake_page, two_step_spec.chapters, on_step_complete=callback)
        assert callback.await_args_list == [call(result.events[0]), call(result.events[1])]

    def test_events_span_chapters(self, fake_page, narrated_spec):
        _, result = play(fake_page, narrated_spec.chapters)
        assert [e.action for e in result.events] == ["navigate", "click", "click", "type", "click"]
        assert result.events[4].narration == "Save your changes."

    def test_timestamps_non_decreasing(self, fake_page, narrated_spec):
        _, result = play(fake_page, narrated_spec.chapters)
        stamps = [e.timestamp for e in result.events]
        assert stamps == sorted(stamps)


class TestFailures:
    def test_step_error_is_wrapped(self, fake_page, fake_locator, two_step_spec):
        cause = TimeoutError("Timeout 15000ms exceeded")
        fake_locator.click.side_effect = cause

        with pytest.raises(PlaybackStepError) as exc_info:
            play(fake_page, two_step_spec.chapters)

        err = exc_info.value
        assert err.step_index == 1
        assert err.chapter_title == "Getting started"
        assert err.selector == "#btn"
        assert err.cause is cause
        assert err.__cause__ is cause
        assert [e.action for e in err.events] == ["navigate"]
        assert str(err) == "Playback failed at step 1 (Getting started): click #btn"

    def test_error_dict_is_serializable(self, fake_page, fake_locator, two_step_spec):
        fake_locator.click.side_effect = TimeoutError("boom")
        with pytest.raises(PlaybackStepError) as exc_info:
            play(fake_page, two_step_spec.chapters)

        data = exc_info.value.to_dict()
        assert data["stepIndex"] == 1
        assert data["step"] == {"action": "click", "selector": "#btn"}
        assert data["cause"] == "TimeoutError: boom"
        assert len(data["events"]) == 1

    def test_first_step_failure_has_no_events(self, fake_page, two_step_spec):
        fake_page.goto.side_effect = RuntimeError("net::ERR_CONNECTION_REFUSED")
        with pytest.raises(PlaybackStepError) as exc_info:
            play(fake_page, two_step_spec.chapters)
        assert exc_info.value.step_index == 0
        assert exc_info.value.events == []
        assert str(exc_info.value) == "Playback failed at step 0 (Getting started): navigate"

    def test_callback_error_propagates_unwrapped(self, fake_page, two_step_spec):
        callback = AsyncMock(side_effect=OSError("disk full"))
        with pytest.raises(OSError, match="disk full"):
            play(fake_page, two_step_spec.chapters, on_step_complete=callback)
        callback.assert_awaited_once()

    def test_visual_effect_errors_do_not_fail_the_run(self, fake_page, two_step_spec):
        fake_page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")
        _, result = play(fake_page, two_step_spec.chapters)
        assert len(result.events) == 2


class TestOverlays:
    def test_redaction_without_cursor_when_unpaced(self, fake_page, two_step_spec):
        play(fake_page, two_step_spec.chapters, redaction_selectors=[".api-key"])
        contents = [c.kwargs["content"] for c in fake_page.add_style_tag.await_args_list]
        assert contents and all(".api-key" in c for c in contents)
        assert call(ENSURE_CURSOR_SCRIPT) not in fake_page.evaluate.await_args_list

    def test_cursor_injected_when_paced(self, fake_page, two_step_spec):
        play(fake_page, two_step_spec.chapters, pacing=Pacing())
        assert call(ENSURE_CURSOR_SCRIPT) in fake_page.evaluate.await_args_list

    def test_overlays_reapplied_after_navigate(self, fake_page, two_step_spec):
        play(fake_page, two_step_spec.chapters, redaction_selectors=[".secret"])
        # once at start, once after the navigate step
        assert fake_page.add_style_tag.await_count == 2


class TestPacing:
    def test_settle_delay_after_every_step(self, fake_page, two_step_spec):
        pacing = NO_PACING.model_copy(update={"settle_delay_ms": 200})
        play(fake_page, two_step_spec.chapters, pacing=pacing)
        assert fake_page.wait_for_timeout.await_args_list == [call(200), call(200)]

    def test_no_waits_without_pacing(self, fake_page, two_step_spec):
        play(fake_page, two_step_spec.chapters)
        fake_page.wait_for_timeout.assert_not_awaited()

    def test_cursor_moves_to_target_centre(self, fake_page, two_step_spec):
        pacing = NO_PACING.model_copy(update={"cursor_duration_ms": 600})
        engine, _ = play(fake_page, two_step_spec.chapters, pacing=pacing)
        moves = [c for c in fake_page.evaluate.await_args_list if c.args and c.args[0] == MOVE_CURSOR_SCRIPT]
        assert len(moves) == 1
        assert moves[0].args[1]["toX"] == 140
        assert moves[0].args[1]["toY"] == 215
        assert engine.cursor_position == (140, 215)

    def test_auto_sync_waits_before_first_step(self, fake_page, narrated_spec):
        sync = NarrationSync(
            mode=SyncMode.AUTO_SYNC,
            buffer_ms=500,
            timing={0: NarrationTimingEntry(text="Welcome to the dashboard.", duration_ms=1000)},
        )
        play(fake_page, narrated_spec.chapters, narration=sync)
        assert fake_page.wait_for_timeout.await_args_list[0] == call(1500)
