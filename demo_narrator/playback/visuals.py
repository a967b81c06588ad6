"""In-page cursor, spotlight, focus ring, and click ripple effects.

WHY: Headless Playwright clicks are invisible in a recording. Viewers
need to see a pointer travel to the target, the target highlighted, and
a click land. These effects are cosmetic: a page that rejects script
evaluation must still be driven correctly.

HOW: CURSOR_CSS is injected as a style tag (see overlays.py). Effects are
small JavaScript functions run through page.evaluate with the target's
bounding box as the argument. run_effect() executes one effect and logs
a Playwright failure at debug level instead of raising.

RULES:
- Every effect is a no-op when the bounding box is None
- Element ids are prefixed dm- to avoid clashing with the app under test
- Only run_effect() may swallow errors, and only Playwright errors
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from demo_narrator.core.ir import BoundingBox

logger = logging.getLogger(__name__)

# Cubic-bezier y control points for cursor easing.
EASE_P1 = 0.42
EASE_P2 = 0.58

_CURSOR_SIZE = 24
_CURSOR_Z = 999999
_CURSOR_SVG = (
    "<svg xmlns='http://www.w3.org/2000/svg' width='24' height='24' viewBox='0 0 24 24'>"
    "<path d='M4 1L4 19L8.5 14.5L12.5 22L15 21L11 13L17 13Z' fill='white' "
    "stroke='black' stroke-width='1.2' stroke-linejoin='round'/></svg>"
)
_CURSOR_URL = "data:image/svg+xml," + quote(_CURSOR_SVG, safe="")

CURSOR_CSS = f"""
#dm-cursor {{
  position: fixed;
  width: {_CURSOR_SIZE}px;
  height: {_CURSOR_SIZE}px;
  pointer-events: none;
  z-index: {_CURSOR_Z};
  transform: translate(-4px, -2px);
  background-image: url("{_CURSOR_URL}");
  background-size: contain;
  background-repeat: no-repeat;
  filter: drop-shadow(1px 2px 2px rgba(0, 0, 0, 0.35));
  transition: transform 0.15s ease;
}}

#dm-focus-ring {{
  position: fixed;
  left: 0;
  top: 0;
  width: 10px;
  height: 10px;
  pointer-events: none;
  z-index: {_CURSOR_Z - 1};
  opacity: 0;
  border-radius: 12px;
  border: 2px solid rgba(50, 220, 255, 0.95);
  box-shadow: 0 0 0 6px rgba(50, 220, 255, 0.18), 0 12px 28px rgba(0, 0, 0, 0.25);
  transition: opacity 0.12s ease, transform 0.12s ease;
}}

#dm-spotlight {{
  position: fixed;
  left: 0;
  top: 0;
  width: 10px;
  height: 10px;
  pointer-events: none;
  z-index: {_CURSOR_Z - 3};
  opacity: 0;
  border-radius: 16px;
  background: rgba(255, 255, 255, 0.04);
  box-shadow: 0 0 0 9999px rgba(2, 6, 23, 0.22);
  transition: opacity 0.14s ease, transform 0.14s ease;
}}

.dm-ripple {{
  position: fixed;
  width: 16px;
  height: 16px;
  pointer-events: none;
  z-index: {_CURSOR_Z - 2};
  border-radius: 999px;
  border: 2px solid rgba(255, 255, 255, 0.85);
  box-shadow: 0 0 0 4px rgba(50, 220, 255, 0.25);
  transform: translate(-50%, -50%) scale(0.2);
  animation: dm-ripple 420ms ease-out forwards;
}}

@keyframes dm-ripple {{
  0% {{ transform: translate(-50%, -50%) scale(0.2); opacity: 0.95; }}
  100% {{ transform: translate(-50%, -50%) scale(2.2); opacity: 0; }}
}}
""".strip()

ENSURE_CURSOR_SCRIPT = """
() => {
  if (!document.getElementById('dm-cursor')) {
    const cursor = document.createElement('div');
    cursor.id = 'dm-cursor';
    cursor.style.left = '0px';
    cursor.style.top = '0px';
    document.body.appendChild(cursor);
  }
}
"""

MOVE_CURSOR_SCRIPT = """
(args) => {
  let cursor = document.getElementById('dm-cursor');
  if (!cursor) {
    cursor = document.createElement('div');
    cursor.id = 'dm-cursor';
    document.body.appendChild(cursor);
  }
  const ease = (t) => {
    const mt = 1 - t;
    return 3 * mt * mt * t * args.p1 + 3 * mt * t * t * args.p2 + t * t * t;
  };
  const start = performance.now();
  const animate = (now) => {
    const progress = Math.min((now - start) / args.duration, 1);
    const eased = ease(progress);
    cursor.style.left = (args.fromX + (args.toX - args.fromX) * eased) + 'px';
    cursor.style.top = (args.fromY + (args.toY - args.fromY) * eased) + 'px';
    if (progress < 1) requestAnimationFrame(animate);
  };
  cursor.style.left = args.fromX + 'px';
  cursor.style.top = args.fromY + 'px';
  requestAnimationFrame(animate);
}
"""

CLICK_PULSE_SCRIPT = """
() => {
  const cursor = document.getElementById('dm-cursor');
  if (!cursor) return;
  cursor.style.transform = 'translate(-4px, -2px) scale(0.7)';
  setTimeout(() => { cursor.style.transform = 'translate(-4px, -2px) scale(1)'; }, 150);
}
"""

_HIGHLIGHT_SCRIPT = """
([b, id, pad, holdMs]) => {
  let el = document.getElementById(id);
  if (!el) {
    el = document.createElement('div');
    el.id = id;
    document.body.appendChild(el);
  }
  const x = Math.max(0, b.x - pad);
  const y = Math.max(0, b.y - pad);
  el.style.width = Math.max(8, b.width + pad * 2) + 'px';
  el.style.height = Math.max(8, b.height + pad * 2) + 'px';
  el.style.transform = `translate(${x}px, ${y}px)`;
  el.style.opacity = '1';
  setTimeout(() => { el.style.opacity = '0'; }, holdMs);
}
"""

RIPPLE_SCRIPT = """
(b) => {
  const el = document.createElement('div');
  el.className = 'dm-ripple';
  el.style.left = (b.x + b.width / 2) + 'px';
  el.style.top = (b.y + b.height / 2) + 'px';
  document.body.appendChild(el);
  setTimeout(() => el.remove(), 800);
}
"""


async def run_effect(name: str, effect: Awaitable[Any]) -> None:
    try:
        await effect
    except PlaywrightError as exc:
        logger.debug("Visual effect %s failed: %s", name, exc)


async def flash_spotlight(page: Page, box: BoundingBox | None) -> None:
    if box is None:
        return
    await run_effect(
        "spotlight",
        page.evaluate(_HIGHLIGHT_SCRIPT, [box.to_dict(), "dm-spotlight", 14, 650]),
    )


async def pulse_focus(page: Page, box: BoundingBox | None) -> None:
    if box is None:
        return
    await run_effect(
        "focus",
        page.evaluate(_HIGHLIGHT_SCRIPT, [box.to_dict(), "dm-focus-ring", 10, 420]),
    )


async def click_feedback(page: Page, box: BoundingBox | None) -> None:
    """Cursor press animation plus a ripple at the target's centre."""
    if box is None:
        return
    await run_effect("click-pulse", page.evaluate(CLICK_PULSE_SCRIPT))
    await run_effect("ripple", page.evaluate(RIPPLE_SCRIPT, box.to_dict()))
