"""Piper local TTS provider.

WHY: Piper runs fully offline, which suits CI recordings and demos of
internal tools that must not send text to a hosted API.

HOW: Runs the piper binary with --output-raw, feeds the text on stdin,
and wraps the raw 16-bit mono PCM it prints in a WAV container with the
stdlib wave module.

RULES:
- voice option is the piper model name/path; falls back to PIPER_MODEL
- A missing binary or non-zero exit surfaces as TTSProviderError
"""

from __future__ import annotations

import io
import logging
import wave

from demo_narrator import config
from demo_narrator.narration.providers.base import TTSOptions, TTSProvider, TTSProviderError
from demo_narrator.utils.process import ToolInvocationError, run_tool

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "en_US-lessac-medium"
SAMPLE_RATE = 22050


def pcm_to_wav(pcm: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buf.getvalue()


class PiperTTSProvider(TTSProvider):
    @property
    def name(self) -> str:
        return "piper"

    async def synthesize(self, text: str, options: TTSOptions) -> bytes:
        model = options.voice or config.PIPER_MODEL or DEFAULT_MODEL
        logger.info("Synthesizing %d chars with voice=%s", len(text), model)
        args = [config.PIPER_BIN, "--model", model, "--output-raw"]
        if options.speed and options.speed != 1.0:
            args += ["--length-scale", f"{1.0 / options.speed:.3f}"]
        try:
            result = await run_tool(args, stdin=text.encode("utf-8"))
        except ToolInvocationError as exc:
            raise TTSProviderError(self.name, str(exc)) from exc
        return pcm_to_wav(result.stdout)
