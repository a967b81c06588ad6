"""Page overlays: redaction blur, cursor injection, and secret scanning.

WHY: Demo recordings run against real-looking data. Fields listed in the
spec's redaction block must be blurred in every frame, and visible page
text that looks like a credential must be flagged before the video is
shared. Overlays live in the page's DOM, so they disappear on every
navigation and have to be re-applied.

HOW: generate_blur_styles() turns selectors into one CSS rule each;
apply_redaction() and inject_cursor() add style tags to the page.
scan_for_secrets() runs every configured regex over a text and returns
the matches; check_secrets() reads document.body.innerText and logs
each match as a warning.

RULES:
- Selectors containing { or } are rejected (they would escape the rule)
- Invalid regex patterns are logged and skipped, never raised
- Secret matches are logged only and never fail a run
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from demo_narrator.playback.errors import InvalidStepError
from demo_narrator.playback.visuals import CURSOR_CSS, ENSURE_CURSOR_SCRIPT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretMatch:
    pattern: str
    text: str


def generate_blur_styles(selectors: Sequence[str]) -> str:
    for selector in selectors:
        if "{" in selector or "}" in selector:
            raise InvalidStepError(f"Invalid redaction selector (contains braces): {selector}")
    return "\n".join(
        f"{selector} {{ filter: blur(10px) !important; pointer-events: none !important; }}"
        for selector in selectors
    )


def scan_for_secrets(text: str, patterns: Sequence[str]) -> list[SecretMatch]:
    matches = []
    for pattern in patterns:
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            logger.warning("Invalid secret pattern, skipping: %s (%s)", pattern, exc)
            continue
        for found in regex.finditer(text):
            matches.append(SecretMatch(pattern=pattern, text=found.group(0)))
    return matches


async def apply_redaction(page: Page, selectors: Sequence[str]) -> None:
    if not selectors:
        return
    await page.add_style_tag(content=generate_blur_styles(selectors))
    logger.info("Applied redaction to %d selectors", len(selectors))


async def inject_cursor(page: Page) -> None:
    await page.add_style_tag(content=CURSOR_CSS)
    await page.evaluate(ENSURE_CURSOR_SCRIPT)
    logger.debug("Injected cursor overlay")


async def check_secrets(page: Page, patterns: Sequence[str]) -> list[SecretMatch]:
    """Scan the page's visible text and log every secret-looking match."""
    if not patterns:
        return []
    try:
        text = await page.evaluate("() => document.body ? document.body.innerText : ''")
    except PlaywrightError as exc:
        logger.warning("Secret scan skipped, page text unavailable: %s", exc)
        return []

    matches = scan_for_secrets(text or "", patterns)
    for match in matches:
        logger.warning('Secret detected: pattern="%s" text="%s"', match.pattern, match.text)
    return matches
