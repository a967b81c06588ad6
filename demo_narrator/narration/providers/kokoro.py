"""Kokoro ONNX local TTS provider (optional ``kokoro`` extra).

WHY: Kokoro gives natural-sounding offline narration. Its model is large
and its dependencies (onnxruntime) heavy, so the package is only
imported when this provider is actually selected.

HOW: Loads kokoro_onnx.Kokoro once per provider instance, generates
float samples in a worker thread (the model call is blocking), and
encodes them to 16-bit PCM WAV with soundfile.

RULES:
- Requires ``pip install demo-narrator[kokoro]``
- Model and voices paths come from KOKORO_MODEL_PATH / KOKORO_VOICES_PATH
- Output is always WAV, so durations come from the header
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Any

from demo_narrator import config
from demo_narrator.narration.providers.base import TTSOptions, TTSProvider, TTSProviderError

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "af_heart"
DEFAULT_LANG = "en-us"


class KokoroTTSProvider(TTSProvider):
    def __init__(self) -> None:
        self._model: Any = None

    @property
    def name(self) -> str:
        return "kokoro"

    def _load_model(self) -> Any:
        if self._model is None:
            from kokoro_onnx import Kokoro

            logger.info("Loading Kokoro TTS model from %s", config.KOKORO_MODEL_PATH)
            self._model = Kokoro(config.KOKORO_MODEL_PATH, config.KOKORO_VOICES_PATH)
        return self._model

    def _synthesize_blocking(self, text: str, voice: str, speed: float) -> bytes:
        import soundfile as sf

        samples, sample_rate = self._load_model().create(
            text, voice=voice, speed=speed, lang=DEFAULT_LANG
        )
        buf = io.BytesIO()
        sf.write(buf, samples, sample_rate, format="WAV", subtype="PCM_16")
        return buf.getvalue()

    async def synthesize(self, text: str, options: TTSOptions) -> bytes:
        voice = options.voice or DEFAULT_VOICE
        logger.info("Synthesizing %d chars with voice=%s speed=%s", len(text), voice, options.speed)
        try:
            return await asyncio.to_thread(self._synthesize_blocking, text, voice, options.speed)
        except (OSError, RuntimeError, ValueError) as exc:
            raise TTSProviderError(self.name, str(exc)) from exc
