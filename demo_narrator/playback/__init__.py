"""Browser playback: target resolution, step execution, pacing, and the engine.

WHY: Playback is where a demo spec meets a real browser. Every step must
run in document order against Playwright, leave behind a precise
ActionEvent, and pause long enough for its narration to be heard.

HOW: targets.py turns selectors into locators, handlers.py executes one
step kind each, waiter.py computes narration-aware pauses, and engine.py
drives them all and wraps failures with context.

RULES:
- Steps never run concurrently
- Handlers raise; only the engine catches (once) to attach context
- Visual feedback never decides whether a step succeeded
"""

from demo_narrator.playback.engine import (
    NarrationSync,
    PlaybackEngine,
    PlaybackOptions,
    PlaybackResult,
)
from demo_narrator.playback.errors import PlaybackStepError

__all__ = [
    "NarrationSync",
    "PlaybackEngine",
    "PlaybackOptions",
    "PlaybackResult",
    "PlaybackStepError",
]
