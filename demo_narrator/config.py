"""Configuration constants, narration settings, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Tool binaries, TTS defaults, and narration sync
settings are plain module constants rather than buried in logic, so both
humans and coding agents can modify them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values read through os.getenv with defaults. The
load_api_key() function provides a clear error when a provider key is
missing, and resolve_narration_settings() merges CLI, spec, and
environment values into one validated NarrationSettings.

RULES:
- API keys are loaded from .env via python-dotenv, never hardcoded
- All defaults can be overridden via environment variables
- Sync mode must be one of manual, auto-sync, warn-only
- An invalid buffer falls back to DEFAULT_NARRATION_BUFFER_MS
"""

from __future__ import annotations

import enum
import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("DEMO_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# ---------------------------------------------------------------------------
# External tools
# ---------------------------------------------------------------------------

FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
FFPROBE_BIN = os.getenv("FFPROBE_BIN", "ffprobe")
PIPER_BIN = os.getenv("PIPER_BIN", "piper")

# ---------------------------------------------------------------------------
# TTS providers
# ---------------------------------------------------------------------------

DEFAULT_TTS_PROVIDER = os.getenv("DEMO_TTS_PROVIDER", "openai")
DEFAULT_TTS_VOICE = os.getenv("DEMO_TTS_VOICE") or None

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "tts-1")
ELEVENLABS_BASE_URL = os.getenv("ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1")
ELEVENLABS_MODEL = os.getenv("ELEVENLABS_MODEL", "eleven_multilingual_v2")
PIPER_MODEL = os.getenv("PIPER_MODEL") or None
KOKORO_MODEL_PATH = os.getenv("KOKORO_MODEL_PATH", "kokoro-v1.0.onnx")
KOKORO_VOICES_PATH = os.getenv("KOKORO_VOICES_PATH", "voices-v1.0.bin")

TTS_HTTP_TIMEOUT_S = float(os.getenv("DEMO_TTS_HTTP_TIMEOUT_S", "60"))

# ---------------------------------------------------------------------------
# Narration synchronization
# ---------------------------------------------------------------------------

DEFAULT_NARRATION_BUFFER_MS = 500
"""Silence kept between the end of a narration clip and its action."""


class SyncMode(str, enum.Enum):
    """How playback pacing reacts to narration durations."""

    MANUAL = "manual"
    AUTO_SYNC = "auto-sync"
    WARN_ONLY = "warn-only"


class NarrationConfigError(ValueError):
    """Raised when a narration sync setting cannot be interpreted."""


@dataclass(frozen=True)
class NarrationSettings:
    """Resolved narration sync configuration for one run."""

    mode: SyncMode = SyncMode.MANUAL
    buffer_ms: int = DEFAULT_NARRATION_BUFFER_MS


def parse_sync_mode(value: str | SyncMode) -> SyncMode:
    """Parse a sync mode name into a SyncMode.

    RULES:
    - Accepts the enum itself or its string value
    - Anything else raises NarrationConfigError listing the valid modes
    """
    if isinstance(value, SyncMode):
        return value
    try:
        return SyncMode(str(value).strip())
    except ValueError:
        valid = ", ".join(m.value for m in SyncMode)
        raise NarrationConfigError(
            f'Invalid narration sync mode "{value}". Expected one of: {valid}'
        ) from None


def _parse_buffer(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(round(number))


def resolve_narration_settings(
    spec_mode: str | None = None,
    spec_buffer_ms: object = None,
    *,
    mode: str | None = None,
    buffer_ms: object = None,
) -> NarrationSettings:
    """Merge narration sync settings from CLI, spec, and environment.

    WHY: The sync mode can come from a command-line flag, the demo file's
    narration.sync block, or DEMO_NARRATION_SYNC. Every caller needs the
    same precedence and the same validation.

    HOW: Picks the first non-empty value in the order CLI → spec → env
    for both fields, validates the mode, and falls back to the default
    buffer when the chosen value is not a finite non-negative number.

    RULES:
    - Keyword args (mode, buffer_ms) are CLI values and win
    - Unknown modes raise NarrationConfigError
    - Invalid or negative buffers silently use DEFAULT_NARRATION_BUFFER_MS

    Args:
        spec_mode: narration.sync.mode from the demo file, if any.
        spec_buffer_ms: narration.sync.bufferMs from the demo file, if any.
        mode: CLI override for the mode.
        buffer_ms: CLI override for the buffer.

    Returns:
        A validated NarrationSettings.
    """
    raw_mode = mode or spec_mode or os.getenv("DEMO_NARRATION_SYNC") or SyncMode.MANUAL.value

    raw_buffer = buffer_ms
    if raw_buffer is None:
        raw_buffer = spec_buffer_ms
    if raw_buffer is None:
        raw_buffer = os.getenv("DEMO_NARRATION_BUFFER_MS")
    parsed_buffer = _parse_buffer(raw_buffer)

    return NarrationSettings(
        mode=parse_sync_mode(raw_mode),
        buffer_ms=DEFAULT_NARRATION_BUFFER_MS if parsed_buffer is None else parsed_buffer,
    )


def load_api_key(env_var: str, provider: str) -> str:
    """Load a TTS provider API key from the environment.

    WHY: Hosted TTS providers need an API key. Loading it from the
    environment (via .env) keeps it out of source code and out of specs.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv(env_var, "").strip()
    if not key:
        raise ValueError(
            f"{provider} API key not configured. "
            f"Add {env_var} to the .env file in the project folder."
        )
    return key
