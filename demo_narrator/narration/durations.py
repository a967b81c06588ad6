"""Measure or estimate narration clip durations.

WHY: Every pacing decision downstream depends on how long a clip lasts.
Reading a WAV header is instant and exact; probing arbitrary formats
needs ffprobe; and when synthesis fails altogether a word-count
estimate is still better than no entry at all.

HOW: wav_duration_ms() parses the RIFF/WAVE header with the stdlib wave
module. measure_clip_ms() uses that fast path for providers known to
return well-formed WAV and falls back to ffprobe otherwise.
estimate_duration_ms() is the heuristic fallback.

RULES:
- Estimate = words / 2.5 words-per-second, minimum 800ms
- Header parsing never raises; an unreadable header returns None
"""

from __future__ import annotations

import io
import wave
from pathlib import Path

from demo_narrator.utils.process import probe_duration_ms

WORDS_PER_SECOND = 2.5
MIN_ESTIMATE_MS = 800

WAV_HEADER_PROVIDERS = frozenset({"kokoro", "piper"})
"""Providers whose WAV output carries accurate frame counts."""


def estimate_duration_ms(text: str) -> int:
    words = len(text.split())
    return max(MIN_ESTIMATE_MS, int(round(words / WORDS_PER_SECOND * 1000)))


def wav_duration_ms(audio: bytes) -> int | None:
    if audio[:4] != b"RIFF" or audio[8:12] != b"WAVE":
        return None
    try:
        with wave.open(io.BytesIO(audio), "rb") as wav:
            rate = wav.getframerate()
            frames = wav.getnframes()
    except (wave.Error, EOFError):
        return None
    if rate <= 0:
        return None
    return int(round(frames / rate * 1000))


async def measure_clip_ms(audio: bytes, path: str | Path, provider_name: str) -> int:
    """Duration of a synthesized clip already written to ``path``."""
    if provider_name in WAV_HEADER_PROVIDERS:
        duration = wav_duration_ms(audio)
        if duration is not None:
            return duration
    return await probe_duration_ms(path)
