"""Synthesize narration before capture to learn exact clip durations.

WHY: Auto-sync and warn-only pacing need to know how long each step's
narration lasts *before* the browser starts moving. Synthesizing ahead
of time gives exact durations (and reusable audio). A single flaky TTS
call must not abort a recording, so each failed item degrades to a
word-count estimate instead.

HOW: presynthesize_narration() walks narration_items() (the shared
flattened-index helper) one item at a time: synthesize, write
narration-<index>.<ext>, measure. prepare_narration_timing() is the
caller-facing entry: nothing in manual mode, pre-synthesis otherwise,
and estimates for everything if pre-synthesis cannot run at all.

RULES:
- Sequential, one TTS call at a time
- The returned map has an entry for every narrated step, even on failures
- Estimated entries have no audio_path
- Keys are flattened step indices (every step counted)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from demo_narrator.config import NarrationSettings, SyncMode
from demo_narrator.core.indexing import narration_items
from demo_narrator.core.ir import NarrationTimingEntry, NarrationTimingMap
from demo_narrator.narration.durations import estimate_duration_ms, measure_clip_ms
from demo_narrator.narration.providers import TTSOptions, TTSProvider
from demo_narrator.spec.models import Chapter

logger = logging.getLogger(__name__)


@dataclass
class NarrationPreSynthesisResult:
    timing: NarrationTimingMap
    warnings: list[str] = field(default_factory=list)


def build_estimated_narration_timing(chapters: Sequence[Chapter]) -> NarrationTimingMap:
    """Heuristic-only timing for every narrated step."""
    return {
        item.index: NarrationTimingEntry(text=item.text, duration_ms=estimate_duration_ms(item.text))
        for item in narration_items(chapters)
    }


async def presynthesize_narration(
    chapters: Sequence[Chapter],
    provider: TTSProvider,
    options: TTSOptions,
    output_dir: str | Path,
) -> NarrationPreSynthesisResult:
    """Synthesize and measure every narrated step.

    Args:
        chapters: Spec chapters (indexed with the flattened step index).
        provider: TTS provider used for every clip.
        options: Voice options passed to the provider.
        output_dir: Directory receiving narration-<index>.<ext> files.

    Returns:
        Timing for every narrated step, plus one warning per degraded item.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    result = NarrationPreSynthesisResult(timing={})

    for item in narration_items(chapters):
        try:
            audio = await provider.synthesize(item.text, options)
            path = out / f"narration-{item.index}.{provider.audio_format}"
            path.write_bytes(audio)
            duration = await measure_clip_ms(audio, path, provider.name)
        except Exception as exc:  # noqa: BLE001 - degrade this item to an estimate
            estimate = estimate_duration_ms(item.text)
            message = (
                f"Narration pre-synthesis failed for step {item.index} "
                f"({provider.name}): {exc}. Using estimate of {estimate}ms"
            )
            logger.warning(message)
            result.warnings.append(message)
            result.timing[item.index] = NarrationTimingEntry(text=item.text, duration_ms=estimate)
            continue

        logger.debug("Pre-synthesized step %d: %dms", item.index, duration)
        result.timing[item.index] = NarrationTimingEntry(
            text=item.text, duration_ms=duration, audio_path=str(path)
        )

    return result


async def prepare_narration_timing(
    chapters: Sequence[Chapter],
    settings: NarrationSettings,
    provider_factory: Callable[[], TTSProvider],
    options: TTSOptions,
    output_dir: str | Path,
) -> NarrationTimingMap | None:
    """Timing map for the narration waiter, or None in manual mode.

    RULES:
    - manual → None (pacing ignores narration)
    - pre-synthesis raising as a whole (e.g. unknown provider) → estimates
    """
    if settings.mode is SyncMode.MANUAL:
        return None

    try:
        provider = provider_factory()
        result = await presynthesize_narration(chapters, provider, options, output_dir)
    except Exception as exc:  # noqa: BLE001 - fall back to estimates for the whole run
        logger.warning("Pre-synthesis unavailable, falling back to estimates: %s", exc)
        return build_estimated_narration_timing(chapters)

    logger.info(
        "Pre-synthesized %d narration clip(s) for %s mode", len(result.timing), settings.mode.value
    )
    return result.timing
