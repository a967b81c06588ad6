"""TTS provider registry: pluggable narration voices.

WHY: The demo file's narration.provider field, the CLI, and the environment
all name a provider by a short string. A central dict makes it trivial
to add a voice backend: create the provider class, import it here, add
one line.

HOW: PROVIDERS maps string keys to provider *classes* (not instances).
create_provider() instantiates by name.

RULES:
- Keys match TTSProvider.name exactly
- Every provider listed here must be importable without its optional deps
"""

from __future__ import annotations

from demo_narrator.narration.providers.base import (
    TTSOptions,
    TTSProvider,
    TTSProviderError,
)
from demo_narrator.narration.providers.elevenlabs import ElevenLabsTTSProvider
from demo_narrator.narration.providers.kokoro import KokoroTTSProvider
from demo_narrator.narration.providers.openai import OpenAITTSProvider
from demo_narrator.narration.providers.piper import PiperTTSProvider

PROVIDERS: dict[str, type[TTSProvider]] = {
    "openai": OpenAITTSProvider,
    "elevenlabs": ElevenLabsTTSProvider,
    "piper": PiperTTSProvider,
    "kokoro": KokoroTTSProvider,
}


def create_provider(name: str) -> TTSProvider:
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f'Unknown TTS provider: "{name}". Available: {", ".join(sorted(PROVIDERS))}'
        ) from None
    return provider_cls()


__all__ = [
    "PROVIDERS",
    "TTSOptions",
    "TTSProvider",
    "TTSProviderError",
    "create_provider",
]
