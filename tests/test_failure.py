"""Tests for best-effort failure artifact capture.

WHY: When a step fails, the artifacts are a bonus and the original
error is what matters. These tests check that every artifact is written
when possible and that a failing capture never raises.
"""

from __future__ import annotations

import asyncio
import json
import logging

from demo_narrator.core.ir import ActionEvent
from demo_narrator.playback.errors import PlaybackStepError
from demo_narrator.playback.failure import (
    FAILURE_DOM,
    FAILURE_JSON,
    FAILURE_SCREENSHOT,
    attempt_and_log,
    capture_failure_artifacts,
)
from demo_narrator.spec.models import ClickStep


def make_error():
    cause = TimeoutError("Timeout 15000ms exceeded")
    return PlaybackStepError(
        step_index=3,
        chapter_title="Settings",
        step=ClickStep(selector="#save"),
        selector="#save",
        events=[ActionEvent(action="navigate", timestamp=0, duration=10)],
        start_timestamp=0,
        cause=cause,
    )


class TestAttemptAndLog:
    def test_returns_result(self):
        async def ok():
            return 42

        assert asyncio.run(attempt_and_log("thing", ok())) == 42

    def test_swallows_and_logs(self, caplog):
        async def boom():
            raise OSError("disk full")

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(attempt_and_log("thing", boom())) is None
        assert "Failed to capture thing: disk full" in caplog.text


class TestCaptureFailureArtifacts:
    def test_writes_all_three(self, fake_page, tmp_path):
        async def fake_screenshot(path, full_page):
            with open(path, "wb") as fh:
                fh.write(b"\x89PNG")

        fake_page.screenshot.side_effect = fake_screenshot
        paths = asyncio.run(capture_failure_artifacts(fake_page, make_error(), tmp_path))

        assert sorted(p.name for p in paths) == sorted([FAILURE_JSON, FAILURE_SCREENSHOT, FAILURE_DOM])
        data = json.loads((tmp_path / FAILURE_JSON).read_text(encoding="utf-8"))
        assert data["stepIndex"] == 3
        assert data["chapterTitle"] == "Settings"
        assert data["error"] == "Playback failed at step 3 (Settings): click #save"
        assert (tmp_path / FAILURE_DOM).read_text(encoding="utf-8").startswith("<html>")

    def test_screenshot_failure_does_not_raise(self, fake_page, tmp_path, caplog):
        fake_page.screenshot.side_effect = RuntimeError("Target page has been closed")
        with caplog.at_level(logging.WARNING):
            paths = asyncio.run(capture_failure_artifacts(fake_page, make_error(), tmp_path))

        assert sorted(p.name for p in paths) == sorted([FAILURE_JSON, FAILURE_DOM])
        assert "Failed to capture screenshot" in caplog.text

    def test_without_page_only_json(self, tmp_path):
        paths = asyncio.run(capture_failure_artifacts(None, make_error(), tmp_path / "out"))
        assert [p.name for p in paths] == [FAILURE_JSON]
