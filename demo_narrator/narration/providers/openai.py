"""OpenAI speech API provider (tts-1, WAV output)."""

from __future__ import annotations

import logging

import httpx

from demo_narrator import config
from demo_narrator.narration.providers.base import TTSOptions, TTSProvider, TTSProviderError

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "alloy"


class OpenAITTSProvider(TTSProvider):
    """Calls POST /audio/speech with httpx.AsyncClient.

    RULES:
    - API key from OPENAI_API_KEY (ValueError when missing)
    - Requests response_format "wav" so durations can be read from the header
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @property
    def name(self) -> str:
        return "openai"

    async def synthesize(self, text: str, options: TTSOptions) -> bytes:
        api_key = config.load_api_key("OPENAI_API_KEY", "OpenAI")
        voice = options.voice or DEFAULT_VOICE
        logger.info("Synthesizing %d chars with voice=%s speed=%s", len(text), voice, options.speed)

        async with httpx.AsyncClient(
            base_url=config.OPENAI_BASE_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=config.TTS_HTTP_TIMEOUT_S,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(
                    "/audio/speech",
                    json={
                        "model": config.OPENAI_TTS_MODEL,
                        "input": text,
                        "voice": voice,
                        "speed": options.speed,
                        "response_format": "wav",
                    },
                )
            except httpx.HTTPError as exc:
                raise TTSProviderError(self.name, str(exc)) from exc

        if resp.status_code != 200:
            raise TTSProviderError(self.name, resp.text, resp.status_code)
        return resp.content
