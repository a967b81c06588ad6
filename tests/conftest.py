"""Shared test fixtures for the demo_narrator test suite.

WHY: Most test modules need the same building blocks: a small demo
spec, the reference event log from the timeline scenarios, and a fake
Playwright page whose locators record what was done to them. Centralizing
them here keeps every test module focused on behaviour.

HOW: Spec dicts are validated through DemoSpec so fixtures exercise the
real schema. The fake page is a MagicMock whose driver coroutines are
AsyncMocks; every locator factory returns the same fake locator unless a
test swaps it.

RULES:
- No fixture touches a real browser, network, or external binary
- Fake locators return a fixed bounding box unless told otherwise
- Reference events match the navigate/click scenario (t=1000 and t=2000)
"""

from __future__ import annotations

import io
import wave
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from demo_narrator.core.ir import ActionEvent, BoundingBox
from demo_narrator.spec.models import DemoSpec

DEFAULT_BOX = {"x": 100, "y": 200, "width": 80, "height": 30}


# ---------------------------------------------------------------------------
# Spec helpers
# ---------------------------------------------------------------------------


def make_spec(
    chapters: List[Dict[str, Any]],
    title: str = "Test Demo",
    **extra: Any,
) -> DemoSpec:
    """Validate a spec dict with the given chapters through the real schema."""
    data: Dict[str, Any] = {"meta": {"title": title}, "chapters": chapters}
    meta_extra = extra.pop("meta", None)
    if meta_extra:
        data["meta"].update(meta_extra)
    data.update(extra)
    return DemoSpec.model_validate(data)


@pytest.fixture
def two_step_spec() -> DemoSpec:
    """One chapter: navigate then click #btn."""
    return make_spec([
        {
            "title": "Getting started",
            "steps": [
                {"action": "navigate", "url": "/"},
                {"action": "click", "selector": "#btn"},
            ],
        }
    ])


@pytest.fixture
def narrated_spec() -> DemoSpec:
    """Two chapters, five steps, narration on flattened steps 0, 2, and 4."""
    return make_spec([
        {
            "title": "Intro",
            "steps": [
                {"action": "navigate", "url": "/", "narration": "Welcome to the dashboard."},
                {"action": "click", "selector": "#menu"},
            ],
        },
        {
            "title": "Settings",
            "steps": [
                {"action": "click", "selector": "#settings", "narration": "Open settings."},
                {"action": "type", "selector": "#name", "text": "Ada"},
                {"action": "click", "selector": "#save", "narration": "  Save your changes.  "},
            ],
        },
    ])


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@pytest.fixture
def reference_events() -> List[ActionEvent]:
    """Navigate at t=1000 (500ms) then click #btn at t=2000 (300ms)."""
    return [
        ActionEvent(action="navigate", timestamp=1000, duration=500),
        ActionEvent(
            action="click",
            timestamp=2000,
            duration=300,
            selector="#btn",
            bounding_box=BoundingBox(**DEFAULT_BOX),
        ),
    ]


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


def make_locator(box: Optional[Dict[str, float]] = DEFAULT_BOX, text: Optional[str] = None) -> MagicMock:
    """Fake Locator: async driver methods are AsyncMocks, nth() returns itself."""
    locator = MagicMock(name="locator")
    for method in (
        "wait_for",
        "scroll_into_view_if_needed",
        "click",
        "hover",
        "fill",
        "set_checked",
        "select_option",
        "set_input_files",
        "drag_to",
        "evaluate",
    ):
        setattr(locator, method, AsyncMock(name=method))
    locator.bounding_box = AsyncMock(return_value=dict(box) if box else None)
    locator.text_content = AsyncMock(return_value=text)
    locator.nth = MagicMock(return_value=locator)
    return locator


def make_page(locator: Optional[MagicMock] = None) -> MagicMock:
    """Fake Page whose locator factories all return ``locator``."""
    page = MagicMock(name="page")
    loc = locator if locator is not None else make_locator()
    for factory in (
        "locator",
        "get_by_role",
        "get_by_text",
        "get_by_label",
        "get_by_placeholder",
        "get_by_alt_text",
        "get_by_title",
        "get_by_test_id",
    ):
        setattr(page, factory, MagicMock(name=factory, return_value=loc))
    for method in (
        "goto",
        "go_back",
        "go_forward",
        "evaluate",
        "screenshot",
        "add_style_tag",
        "wait_for_timeout",
        "content",
    ):
        setattr(page, method, AsyncMock(name=method))
    page.evaluate.return_value = ""
    page.content.return_value = "<html><body>fake</body></html>"
    page.keyboard = MagicMock(name="keyboard")
    page.keyboard.press = AsyncMock(name="press")
    page.keyboard.type = AsyncMock(name="type")
    return page


@pytest.fixture
def fake_locator() -> MagicMock:
    return make_locator()


@pytest.fixture
def fake_page(fake_locator) -> MagicMock:
    return make_page(fake_locator)


@pytest.fixture
def locator_factory():
    """make_locator, for tests that need boxes or text of their own."""
    return make_locator


@pytest.fixture
def page_factory():
    """make_page, for tests that build a page around a custom locator."""
    return make_page


@pytest.fixture
def spec_factory():
    """make_spec, for tests that need a spec shaped differently from the fixtures."""
    return make_spec


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


def make_wav(duration_ms: int, rate: int = 16000) -> bytes:
    """Silent mono 16-bit WAV of the given length."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * (rate * duration_ms // 1000))
    return buf.getvalue()


@pytest.fixture
def wav_factory():
    return make_wav


def make_provider(name: str = "fake", audio_format: str = "wav", audio: bytes = b"") -> MagicMock:
    """Fake TTSProvider whose synthesize() returns ``audio``."""
    provider = MagicMock(name="provider")
    provider.name = name
    provider.audio_format = audio_format
    provider.synthesize = AsyncMock(return_value=audio)
    return provider


@pytest.fixture
def provider_factory():
    return make_provider
