"""Place narration clips on one audio track and mix them with ffmpeg.

WHY: Each clip should finish just as the action it describes begins
(the lead-in), but clips must never talk over each other. When narration
is dense those two goals conflict; the rule is that overlap always loses
and a clip is pushed later rather than truncated or dropped.

HOW: schedule_clips() places every clip at max(0, deadline - duration),
then walks them in order pushing each one forward to
previous end + GAP_MS when it would overlap. The placed offsets are
handed to ffmpeg as one adelay filter per input, summed with amix.
mix_narration_audio() synthesizes and probes clips first;
mix_presynthesized_narration() starts from clips already on disk.

RULES:
- GAP_MS (200ms) of silence between consecutive clips, at minimum
- Empty input → None (no track)
- One clip → copied as-is, no ffmpeg mix
- Synthesis, probe, and mix failures are fatal here (no fallback)
- The temporary synthesis directory is always removed
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from demo_narrator import config
from demo_narrator.core.ir import NarrationSegment, TimedNarrationSegment
from demo_narrator.narration.providers import TTSOptions, TTSProvider
from demo_narrator.utils.process import probe_duration_ms, run_tool

logger = logging.getLogger(__name__)

GAP_MS = 200
TMP_DIR_NAME = ".narration-tmp"
OUTPUT_STEM = "narration"


@dataclass(frozen=True)
class NarrationClip:
    """A synthesized clip and the moment its action happens."""

    text: str
    deadline_ms: int
    duration_ms: int
    audio_path: Path


@dataclass(frozen=True)
class NarrationMixResult:
    audio_path: Path
    segments: list[TimedNarrationSegment]
    total_duration_ms: int


def schedule_clips(clips: Sequence[NarrationClip]) -> list[TimedNarrationSegment]:
    """Lead-in placement followed by no-overlap push-forward."""
    placed: list[TimedNarrationSegment] = []
    for clip in clips:
        start = max(0, clip.deadline_ms - clip.duration_ms)
        if placed:
            earliest = placed[-1].end_ms + GAP_MS
            if start < earliest:
                start = earliest
        placed.append(
            TimedNarrationSegment(text=clip.text, start_ms=start, duration_ms=clip.duration_ms)
        )
    return placed


def compute_narration_duration(segments: Sequence[TimedNarrationSegment]) -> int:
    if not segments:
        return 0
    last = segments[-1]
    return last.start_ms + last.duration_ms


def build_mix_command(inputs: Sequence[tuple[Path, int]], output_path: Path) -> list[str]:
    """ffmpeg argv delaying each input by its offset and summing them."""
    args = [config.FFMPEG_BIN, "-y"]
    for path, _offset in inputs:
        args += ["-i", str(path)]

    filters = [f"[{i}]adelay={offset}|{offset}[a{i}]" for i, (_path, offset) in enumerate(inputs)]
    labels = "".join(f"[a{i}]" for i in range(len(inputs)))
    filters.append(f"{labels}amix=inputs={len(inputs)}:duration=longest:normalize=0[out]")

    args += ["-filter_complex", ";".join(filters), "-map", "[out]", str(output_path)]
    return args


async def mix_presynthesized_narration(
    clips: Sequence[NarrationClip],
    output_dir: str | Path,
) -> NarrationMixResult | None:
    """Schedule clips already on disk and produce the narration track.

    Args:
        clips: Clips in narration order, with deadlines relative to video start.
        output_dir: Directory receiving narration.wav (or the copied single clip).

    Returns:
        The mix result, or None when there are no clips.
    """
    if not clips:
        return None

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    segments = schedule_clips(clips)

    if len(clips) == 1:
        source = clips[0].audio_path
        audio_path = out / f"{OUTPUT_STEM}{source.suffix or '.wav'}"
        if source.resolve() != audio_path.resolve():
            shutil.copyfile(source, audio_path)
    else:
        audio_path = out / f"{OUTPUT_STEM}.wav"
        inputs = [(clip.audio_path, seg.start_ms) for clip, seg in zip(clips, segments)]
        await run_tool(build_mix_command(inputs, audio_path))

    total = compute_narration_duration(segments)
    logger.info("Mixed %d narration clip(s) into %s (%dms)", len(clips), audio_path, total)
    return NarrationMixResult(audio_path=audio_path, segments=segments, total_duration_ms=total)


async def mix_narration_audio(
    segments: Sequence[NarrationSegment],
    provider: TTSProvider,
    options: TTSOptions,
    output_dir: str | Path,
) -> NarrationMixResult | None:
    """Synthesize script segments, probe them, and mix the track.

    Each segment's start_ms is the deadline its clip must finish by.
    """
    if not segments:
        return None

    out = Path(output_dir)
    tmp_dir = out / TMP_DIR_NAME
    tmp_dir.mkdir(parents=True, exist_ok=True)
    try:
        clips = []
        for i, segment in enumerate(segments):
            audio = await provider.synthesize(segment.text, options)
            path = tmp_dir / f"seg-{i}.{provider.audio_format}"
            path.write_bytes(audio)
            duration = await probe_duration_ms(path)
            clips.append(
                NarrationClip(
                    text=segment.text,
                    deadline_ms=segment.start_ms,
                    duration_ms=duration,
                    audio_path=path,
                )
            )
        return await mix_presynthesized_narration(clips, out)
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
