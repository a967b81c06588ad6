"""Tests for narration script placement and subtitle rendering."""

from __future__ import annotations

import pytest

from demo_narrator.core.ir import ActionEvent, NarrationSegment, TimedNarrationSegment
from demo_narrator.narration.script import DEFAULT_STEP_DURATION_MS, generate_script
from demo_narrator.narration.subtitles import (
    format_timestamp,
    generate_srt,
    generate_srt_from_timed,
    generate_vtt,
    generate_vtt_from_timed,
)


class TestGenerateScript:
    def test_segments_follow_events(self, narrated_spec):
        events = [
            ActionEvent(action="a", timestamp=10_000 + 1000 * i, duration=400) for i in range(5)
        ]
        script = generate_script(narrated_spec.chapters, events)
        assert [(s.text, s.start_ms, s.end_ms) for s in script] == [
            ("Welcome to the dashboard.", 0, 400),
            ("Open settings.", 2000, 2400),
            ("Save your changes.", 4000, 4400),
        ]

    def test_missing_events_fall_back_to_index_spacing(self, narrated_spec):
        events = [ActionEvent(action="navigate", timestamp=500, duration=100)]
        script = generate_script(narrated_spec.chapters, events)
        assert script[0].start_ms == 0
        assert script[1].start_ms == 2 * DEFAULT_STEP_DURATION_MS
        assert script[2].end_ms == 4 * DEFAULT_STEP_DURATION_MS + DEFAULT_STEP_DURATION_MS

    def test_no_narration(self, two_step_spec, reference_events):
        assert generate_script(two_step_spec.chapters, reference_events) == []


class TestFormatTimestamp:
    @pytest.mark.parametrize("ms,fmt,expected", [
        (0, "vtt", "00:00:00.000"),
        (1500, "vtt", "00:00:01.500"),
        (3_723_004, "srt", "01:02:03,004"),
        (-20, "srt", "00:00:00,000"),
    ])
    def test_formats(self, ms, fmt, expected):
        assert format_timestamp(ms, fmt) == expected


class TestSubtitles:
    SEGMENTS = [
        NarrationSegment(text="First.", start_ms=0, end_ms=1500),
        NarrationSegment(text="Second.", start_ms=4000, end_ms=6250),
    ]

    def test_vtt(self):
        assert generate_vtt(self.SEGMENTS) == (
            "WEBVTT\n"
            "\n"
            "1\n00:00:00.000 --> 00:00:01.500\nFirst.\n"
            "\n"
            "2\n00:00:04.000 --> 00:00:06.250\nSecond.\n"
        )

    def test_srt(self):
        assert generate_srt(self.SEGMENTS) == (
            "1\n00:00:00,000 --> 00:00:01,500\nFirst.\n"
            "\n"
            "2\n00:00:04,000 --> 00:00:06,250\nSecond.\n"
        )

    def test_timed_segments_use_duration(self):
        timed = [TimedNarrationSegment(text="Hi.", start_ms=4000, duration_ms=2000)]
        assert "00:00:04.000 --> 00:00:06.000" in generate_vtt_from_timed(timed)
        assert "00:00:04,000 --> 00:00:06,000" in generate_srt_from_timed(timed)

    def test_empty(self):
        assert generate_vtt([]) == "WEBVTT\n"
        assert generate_srt([]) == ""
