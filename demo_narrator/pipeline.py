"""End-to-end capture and edit pipelines.

WHY: A capture touches every subsystem in a fixed order: narration
timing must exist before the browser starts, events must be persisted
while the browser runs (so a crash still leaves a log), and the
timeline can only be extended once the narration track is mixed. This
module is the one place that sequences them, so the CLI stays a thin
argument parser.

HOW: run_capture() prepares narration timing, launches Chromium with
video recording through Playwright, plays the demo with PlaybackEngine
while writing events.json after every step, then builds the timeline,
mixes narration, writes subtitles, and writes timeline.json.
run_edit() rebuilds timeline.json from a saved event log.

RULES:
- On PlaybackStepError: save partial events and capture failure artifacts,
  then re-raise the original error
- The browser context is closed best-effort on every exit path, so the
  recorded video is always finalized
- metadata.json (playback start timestamp) is written beside events.json
  after a successful run
- Narration reuses pre-synthesized clips when every narrated step has one;
  otherwise it synthesizes from the recorded script
- All outputs land in output_dir
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from playwright.async_api import async_playwright

from demo_narrator import config
from demo_narrator.config import NarrationSettings, resolve_narration_settings
from demo_narrator.core.event_log import read_event_log, write_event_log
from demo_narrator.core.indexing import narration_items
from demo_narrator.core.ir import ActionEvent, NarrationTimingMap, Timeline
from demo_narrator.core.metadata import (
    METADATA_FILE,
    CaptureMetadata,
    read_capture_metadata_maybe,
    write_capture_metadata,
)
from demo_narrator.editor.timeline import build_timeline, extend_timeline_for_narration
from demo_narrator.narration.mixer import (
    NarrationClip,
    NarrationMixResult,
    mix_narration_audio,
    mix_presynthesized_narration,
)
from demo_narrator.narration.presynth import prepare_narration_timing
from demo_narrator.narration.providers import TTSOptions, TTSProvider, create_provider
from demo_narrator.narration.script import generate_script
from demo_narrator.narration.subtitles import generate_srt_from_timed, generate_vtt_from_timed
from demo_narrator.playback import NarrationSync, PlaybackEngine, PlaybackOptions, PlaybackStepError
from demo_narrator.playback.failure import attempt_and_log, capture_failure_artifacts
from demo_narrator.spec.loader import LoadedSpec, load_spec
from demo_narrator.spec.models import Chapter, DemoSpec
from demo_narrator.utils.process import probe_duration_ms

logger = logging.getLogger(__name__)

EVENTS_FILE = "events.json"
TIMELINE_FILE = "timeline.json"
VTT_FILE = "narration.vtt"
SRT_FILE = "narration.srt"


@dataclass
class CaptureResult:
    events_path: Path
    metadata_path: Path
    timeline_path: Path
    timeline: Timeline
    video_path: Path | None = None
    narration: NarrationMixResult | None = None


def narration_enabled(spec: DemoSpec, requested: bool = True) -> bool:
    return (
        requested
        and spec.narration is not None
        and spec.narration.enabled
        and bool(narration_items(spec.chapters))
    )


def _settings_for(spec: DemoSpec, enabled: bool, mode: str | None, buffer_ms: float | None) -> NarrationSettings:
    if not enabled:
        return NarrationSettings()
    sync = spec.narration.sync if spec.narration else None
    return resolve_narration_settings(
        sync.mode if sync else None,
        sync.buffer_ms if sync else None,
        mode=mode,
        buffer_ms=buffer_ms,
    )


def _tts_setup(spec: DemoSpec) -> tuple[Callable[[], TTSProvider], TTSOptions]:
    cfg = spec.narration
    name = (cfg.provider if cfg else None) or config.DEFAULT_TTS_PROVIDER
    voice = (cfg.voice if cfg else None) or config.DEFAULT_TTS_VOICE
    return (lambda: create_provider(name)), TTSOptions(voice=voice)


async def produce_narration(
    chapters: Sequence[Chapter],
    events: Sequence[ActionEvent],
    timing: NarrationTimingMap | None,
    provider_factory: Callable[[], TTSProvider],
    options: TTSOptions,
    output_dir: Path,
) -> NarrationMixResult | None:
    """Mix the narration track for a finished recording.

    Deadlines are each narrated step's event start relative to the first
    event, the same origin the timeline uses.
    """
    if not events:
        return None

    if timing and all(entry.audio_path for entry in timing.values()):
        t0 = events[0].timestamp
        clips = [
            NarrationClip(
                text=entry.text,
                deadline_ms=int(events[index].timestamp - t0),
                duration_ms=entry.duration_ms,
                audio_path=Path(entry.audio_path),
            )
            for index, entry in sorted(timing.items())
            if index < len(events)
        ]
        return await mix_presynthesized_narration(clips, output_dir)

    script = generate_script(chapters, events)
    return await mix_narration_audio(script, provider_factory(), options, output_dir)


def video_offset_ms(metadata: CaptureMetadata, events: Sequence[ActionEvent]) -> int:
    """Milliseconds between the start of playback and the first event."""
    if not events:
        return 0
    return max(0, round(events[0].timestamp - metadata.start_timestamp))


def write_subtitles(mix: NarrationMixResult, output_dir: Path) -> list[Path]:
    vtt = output_dir / VTT_FILE
    srt = output_dir / SRT_FILE
    vtt.write_text(generate_vtt_from_timed(mix.segments), encoding="utf-8")
    srt.write_text(generate_srt_from_timed(mix.segments), encoding="utf-8")
    return [vtt, srt]


async def _close_browser(context, browser) -> None:
    await context.close()
    await browser.close()


async def run_capture(
    loaded: LoadedSpec,
    output_dir: str | Path,
    *,
    headless: bool = True,
    narration: bool = True,
    narration_sync: str | None = None,
    narration_buffer_ms: float | None = None,
    base_url: str | None = None,
    on_status: Callable[[str], None] | None = None,
) -> CaptureResult:
    """Record a spec end to end.

    Args:
        loaded: Validated spec and its directory.
        output_dir: Where events, video, narration, and timeline are written.
        headless: Run Chromium headless.
        narration: False disables narration even when the demo file enables it.
        narration_sync: CLI override for the sync mode.
        narration_buffer_ms: CLI override for the lead-in buffer.
        base_url: Overrides runner.url from the demo file.
        on_status: Optional callback for progress lines.

    Raises:
        PlaybackStepError: a step failed (artifacts are already captured).
    """
    spec = loaded.spec
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    status = on_status or (lambda _msg: None)
    events_path = out / EVENTS_FILE

    enabled = narration_enabled(spec, narration)
    settings = _settings_for(spec, enabled, narration_sync, narration_buffer_ms)
    provider_factory, tts_options = _tts_setup(spec)

    timing = None
    if enabled:
        status(f"Preparing narration timing ({settings.mode.value})...")
        timing = await prepare_narration_timing(
            spec.chapters, settings, provider_factory, tts_options, out / "narration"
        )

    recorded: list[ActionEvent] = []

    async def persist(event: ActionEvent) -> None:
        recorded.append(event)
        write_event_log(recorded, events_path)

    width = spec.meta.resolution.width
    height = spec.meta.resolution.height
    options = PlaybackOptions(
        base_url=base_url or (spec.runner.url if spec.runner and spec.runner.url else ""),
        spec_dir=loaded.spec_dir,
        screenshot_dir=out / "screenshots",
        pacing=spec.meta.pacing,
        redaction_selectors=spec.redaction.selectors if spec.redaction else (),
        secret_patterns=spec.redaction.secrets if spec.redaction else (),
        on_step_complete=persist,
        narration=NarrationSync(mode=settings.mode, buffer_ms=settings.buffer_ms, timing=timing or {}),
    )

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=headless)
        context = await browser.new_context(
            viewport={"width": width, "height": height},
            record_video_dir=str(out / "video"),
            record_video_size={"width": width, "height": height},
        )
        page = await context.new_page()
        status(f"Playing {spec.meta.title!r}...")
        try:
            result = await PlaybackEngine(page, options).execute(spec.chapters)
        except PlaybackStepError as err:
            write_event_log(err.events, events_path)
            await capture_failure_artifacts(page, err, out)
            raise
        finally:
            await attempt_and_log("browser shutdown", _close_browser(context, browser))
        video_path = Path(await page.video.path()) if page.video else None

    write_event_log(result.events, events_path)
    metadata_path = write_capture_metadata(
        CaptureMetadata.now(result.start_timestamp, spec.meta.title), out / METADATA_FILE
    )
    timeline = build_timeline(result.events, spec)

    mix = None
    if enabled:
        status("Mixing narration...")
        mix = await produce_narration(
            spec.chapters, result.events, timing, provider_factory, tts_options, out
        )
        if mix is not None:
            timeline = extend_timeline_for_narration(timeline, mix.total_duration_ms)
            write_subtitles(mix, out)

    timeline_path = out / TIMELINE_FILE
    timeline_path.write_text(timeline.to_json(), encoding="utf-8")
    logger.info("Capture finished: %d events, %dms", len(result.events), timeline.total_duration_ms)
    return CaptureResult(
        events_path=events_path,
        metadata_path=metadata_path,
        timeline_path=timeline_path,
        timeline=timeline,
        video_path=video_path,
        narration=mix,
    )


async def run_edit(
    events_path: str | Path,
    spec_path: str | Path,
    output_path: str | Path,
    narration_audio: str | Path | None = None,
) -> Timeline:
    """Rebuild timeline.json from a saved event log.

    When ``narration_audio`` is given, its probed duration extends the
    timeline exactly as a fresh capture would. A metadata.json beside the
    event log, if readable, reports where the first event falls in the
    recorded video.
    """
    events = read_event_log(events_path)
    metadata = read_capture_metadata_maybe(Path(events_path).parent / METADATA_FILE)
    if metadata is not None and events:
        logger.info(
            "Using capture start timestamp %s: first event at %dms into the video",
            metadata.start_timestamp,
            video_offset_ms(metadata, events),
        )
    loaded = load_spec(spec_path)
    timeline = build_timeline(events, loaded.spec)
    if narration_audio is not None:
        timeline = extend_timeline_for_narration(timeline, await probe_duration_ms(narration_audio))

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(timeline.to_json(), encoding="utf-8")
    return timeline
