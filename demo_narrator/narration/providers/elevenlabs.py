"""ElevenLabs text-to-speech provider (MP3 output)."""

from __future__ import annotations

import logging

import httpx

from demo_narrator import config
from demo_narrator.narration.providers.base import TTSOptions, TTSProvider, TTSProviderError

logger = logging.getLogger(__name__)

DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"  # "Rachel"


class ElevenLabsTTSProvider(TTSProvider):
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @property
    def name(self) -> str:
        return "elevenlabs"

    @property
    def audio_format(self) -> str:
        return "mp3"

    async def synthesize(self, text: str, options: TTSOptions) -> bytes:
        api_key = config.load_api_key("ELEVENLABS_API_KEY", "ElevenLabs")
        voice_id = options.voice or DEFAULT_VOICE_ID
        logger.info("Synthesizing %d chars with voice=%s", len(text), voice_id)

        async with httpx.AsyncClient(
            base_url=config.ELEVENLABS_BASE_URL,
            headers={"xi-api-key": api_key, "Accept": "audio/mpeg"},
            timeout=config.TTS_HTTP_TIMEOUT_S,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(
                    f"/text-to-speech/{voice_id}",
                    json={
                        "text": text,
                        "model_id": config.ELEVENLABS_MODEL,
                        "voice_settings": {"speed": options.speed},
                    },
                )
            except httpx.HTTPError as exc:
                raise TTSProviderError(self.name, str(exc)) from exc

        if resp.status_code != 200:
            raise TTSProviderError(self.name, resp.text, resp.status_code)
        return resp.content
