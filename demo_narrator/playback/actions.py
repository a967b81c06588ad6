"""Shared building blocks for step handlers.

WHY: Every handler follows the same contract: effective timeout, target
readiness, a start timestamp taken before acting, an event measured
after acting. Keeping those pieces here means the handlers only
describe what is different about their step kind.

HOW: PlaybackContext is what the engine hands to each handler: the
page, pacing, paths, and callbacks back into engine-owned state (cursor
position, overlays). The helpers below are plain async functions over
Playwright locators.

RULES:
- Default action timeout is 15000ms; step.timeout_ms wins when > 0
- Interactive targets: attached → scrolled into view → visible
- Upload and element scroll targets only need to be attached
- Event timestamp = action start; duration = now - start
"""

from __future__ import annotations

import math
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from playwright.async_api import Locator, Page

from demo_narrator.core.ir import ActionEvent, BoundingBox
from demo_narrator.core.indexing import narration_text
from demo_narrator.spec.models import Pacing, Step

DEFAULT_ACTION_TIMEOUT_MS = 15000


@dataclass
class PlaybackContext:
    """Everything a step handler may touch.

    RULES:
    - move_cursor_to and reinject_overlays are bound to the engine instance
    - spec_dir resolves relative upload paths; screenshot_dir receives screenshots
    """

    page: Page
    pacing: Pacing
    move_cursor_to: Callable[[BoundingBox | None], Awaitable[None]]
    reinject_overlays: Callable[[], Awaitable[None]]
    base_url: str = ""
    spec_dir: Path | None = None
    screenshot_dir: Path | None = None
    secret_patterns: Sequence[str] = field(default_factory=tuple)


def now_ms() -> int:
    return int(time.time() * 1000)


def step_timeout_ms(step: Step) -> float:
    value = step.timeout_ms
    if value is not None and math.isfinite(value) and value > 0:
        return value
    return DEFAULT_ACTION_TIMEOUT_MS


async def ensure_target_ready(locator: Locator, timeout_ms: float) -> None:
    await locator.wait_for(state="attached", timeout=timeout_ms)
    await locator.scroll_into_view_if_needed(timeout=timeout_ms)
    await locator.wait_for(state="visible", timeout=timeout_ms)


async def ensure_target_attached(locator: Locator, timeout_ms: float) -> None:
    await locator.wait_for(state="attached", timeout=timeout_ms)


async def bounding_box(locator: Locator, timeout_ms: float) -> BoundingBox | None:
    box = await locator.bounding_box(timeout=timeout_ms)
    return BoundingBox.from_dict(box) if box else None


def build_event(
    step: Step,
    start: int,
    *,
    selector: str | None = None,
    box: BoundingBox | None = None,
) -> ActionEvent:
    return ActionEvent(
        action=step.action,
        timestamp=start,
        duration=now_ms() - start,
        selector=selector,
        bounding_box=box,
        narration=narration_text(step),
    )
