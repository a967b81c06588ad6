"""WebVTT and SRT subtitle generation for narration.

WHY: Narrated demos are often watched muted. Subtitles built from the
same placed segments as the audio track stay in sync with the voice.

HOW: Both formats share one cue layout (index, "start --> end", text,
blank line); they differ only in the header and the millisecond
separator. Raw script segments carry start/end; timed (mixed) segments
carry start/duration and are converted first.

RULES:
- VTT timestamps HH:MM:SS.mmm, SRT timestamps HH:MM:SS,mmm
- VTT output starts with "WEBVTT" and a blank line
- Cues are numbered from 1 in input order
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Literal

from demo_narrator.core.ir import NarrationSegment, TimedNarrationSegment

SubtitleFormat = Literal["vtt", "srt"]


def format_timestamp(ms: float, fmt: SubtitleFormat) -> str:
    total = max(0, int(round(ms)))
    hours, rem = divmod(total, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    seconds, millis = divmod(rem, 1000)
    sep = "." if fmt == "vtt" else ","
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{sep}{millis:03d}"


def _render(cues: Iterable[tuple[str, int, int]], fmt: SubtitleFormat) -> str:
    lines = ["WEBVTT", ""] if fmt == "vtt" else []
    for number, (text, start, end) in enumerate(cues, start=1):
        lines.append(str(number))
        lines.append(f"{format_timestamp(start, fmt)} --> {format_timestamp(end, fmt)}")
        lines.append(text)
        lines.append("")
    return "\n".join(lines)


def _raw(segments: Sequence[NarrationSegment]):
    return ((s.text, s.start_ms, s.end_ms) for s in segments)


def _timed(segments: Sequence[TimedNarrationSegment]):
    return ((s.text, s.start_ms, s.end_ms) for s in segments)


def generate_vtt(segments: Sequence[NarrationSegment]) -> str:
    return _render(_raw(segments), "vtt")


def generate_srt(segments: Sequence[NarrationSegment]) -> str:
    return _render(_raw(segments), "srt")


def generate_vtt_from_timed(segments: Sequence[TimedNarrationSegment]) -> str:
    return _render(_timed(segments), "vtt")


def generate_srt_from_timed(segments: Sequence[TimedNarrationSegment]) -> str:
    return _render(_timed(segments), "srt")
