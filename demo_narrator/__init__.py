"""Demo Narrator: narrated product-demo capture and timing core.

WHY: A product demo video is only convincing when the narration lands
just before the click it describes. Recording the browser and the voice
separately drifts apart; this package plays a declarative step list
against a real browser, measures when every action happened, and
reconciles that timing with measured narration durations.

HOW: Three-stage pipeline: playback (Playwright engine producing an
ActionEvent log), edit (timeline builder turning events into render
segments), narrate (pre-synthesis, pacing sync, audio mixing and
subtitles). Each stage is independently testable.

RULES:
- The ActionEvent log is the single source of truth for "what happened when"
- Narration timing is keyed by the flattened step index everywhere
- Rendering and muxing are left to external tools (ffmpeg, renderer)
"""

__version__ = "0.1.0"
