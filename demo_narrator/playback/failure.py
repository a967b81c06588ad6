"""Best-effort post-mortem artifacts for a failed run.

WHY: When a step fails mid-recording, the most useful debugging aids are
what the page looked like, what its DOM contained, and the structured
error with the partial event log. Capturing them is itself fallible (the
page may have crashed), and a capture failure must never replace the
error that actually stopped the run.

HOW: attempt_and_log() awaits one capture coroutine, logs any exception
as a warning, and returns None instead of raising. It is the only place
in the package that swallows exceptions. capture_failure_artifacts()
runs the three captures through it.

RULES:
- failure.json is written first (needs no browser), then screenshot, then DOM
- Each capture is independent; one failing does not skip the others
- Returns only the paths that were actually written
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

from playwright.async_api import Page

from demo_narrator.playback.errors import PlaybackStepError

logger = logging.getLogger(__name__)

T = TypeVar("T")

FAILURE_JSON = "failure.json"
FAILURE_SCREENSHOT = "failure.png"
FAILURE_DOM = "failure.html"


async def attempt_and_log(label: str, operation: Awaitable[T]) -> T | None:
    """Await ``operation``; on any exception log it and return None."""
    try:
        return await operation
    except Exception as exc:  # noqa: BLE001 - capture must never mask the primary error
        logger.warning("Failed to capture %s: %s", label, exc)
        return None


async def _write_error(path: Path, error: PlaybackStepError) -> Path:
    path.write_text(json.dumps(error.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


async def _write_screenshot(page: Page, path: Path) -> Path:
    await page.screenshot(path=str(path), full_page=True)
    return path


async def _write_dom(page: Page, path: Path) -> Path:
    path.write_text(await page.content(), encoding="utf-8")
    return path


async def capture_failure_artifacts(
    page: Page | None,
    error: PlaybackStepError,
    output_dir: str | Path,
) -> list[Path]:
    """Write failure.json, failure.png, and failure.html into ``output_dir``."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    written = [await attempt_and_log("error JSON", _write_error(out / FAILURE_JSON, error))]
    if page is not None:
        written.append(await attempt_and_log("screenshot", _write_screenshot(page, out / FAILURE_SCREENSHOT)))
        written.append(await attempt_and_log("DOM snapshot", _write_dom(page, out / FAILURE_DOM)))

    paths = [p for p in written if p is not None]
    logger.info("Captured %d failure artifact(s) in %s", len(paths), out)
    return paths
