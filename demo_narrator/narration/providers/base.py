"""Base class and shared types for TTS providers.

WHY: Narration can be voiced by hosted APIs (OpenAI, ElevenLabs) or by
local engines (Piper, Kokoro). The pre-synthesizer and mixer only need
one thing from any of them: audio bytes for a piece of text, and a name
for log lines. An ABC pins that narrow contract down.

HOW: Subclasses implement ``name``, ``audio_format`` and the async
``synthesize(text, options)``. Failures are raised as TTSProviderError
so callers can tell a voice problem from a tool or network problem.

RULES:
- synthesize() returns complete audio bytes, never a stream
- audio_format is the file extension of the returned bytes ("wav", "mp3")
- Providers read API keys via config.load_api_key, never from the demo file
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class TTSProviderError(RuntimeError):
    """Raised when a provider cannot synthesize audio.

    RULES:
    - provider is the provider name
    - status_code is set for HTTP providers, None otherwise
    """

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        self.message = message
        prefix = f"{provider} TTS error"
        if status_code is not None:
            prefix += f" {status_code}"
        super().__init__(f"{prefix}: {message}")


@dataclass(frozen=True)
class TTSOptions:
    voice: str | None = None
    speed: float = 1.0


class TTSProvider(ABC):
    """Abstract base class for all TTS providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider identifier used in config and log lines."""

    @property
    def audio_format(self) -> str:
        return "wav"

    @abstractmethod
    async def synthesize(self, text: str, options: TTSOptions) -> bytes:
        """Synthesize ``text`` and return the encoded audio bytes."""
