"""ElevenLabs text-to-speech client."""
from typing import Any

import httpx

from vig.config import get_settings
from vig.services.providers.base import provider_error_from

settings = get_settings()

PROVIDER = "ElevenLabs"

VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.5,
    "style": 0.0,
    "use_speaker_boost": True,
}

FALLBACK_VOICES: list[dict[str, Any]] = [
    {"voice_id": "pNInz6obpgDQGcFmaJgB", "name": "Adam", "category": "premade"},
    {"voice_id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel", "category": "premade"},
    {"voice_id": "AZnzlk1XvdvUeBnXmlld", "name": "Domi", "category": "premade"},
    {"voice_id": "EXAVITQu4vr4xnSDxMaL", "name": "Bella", "category": "premade"},
    {"voice_id": "ErXwobaYiN019PkySvjV", "name": "Antoni", "category": "premade"},
]


class ElevenLabsClient:
    """Client for ElevenLabs API interactions."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key if api_key is not None else settings.elevenlabs_api_key
        self.base_url = base_url or settings.elevenlabs_base_url
        self.timeout = httpx.Timeout(30.0, read=120.0)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_headers(self, accept: str = "application/json") -> dict[str, str]:
        return {
            "Accept": accept,
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }

    async def synthesize(self, text: str, voice_id: str, model_id: str) -> bytes:
        """
        Convert text to speech.

        API Endpoint: POST /v1/text-to-speech/{voice_id}

        Returns:
            MP3 audio bytes

        Raises:
            ProviderError: on HTTP or transport failure
        """
        payload = {
            "text": text,
            "model_id": model_id,
            "voice_settings": VOICE_SETTINGS,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/v1/text-to-speech/{voice_id}",
                    headers=self._get_headers(accept="audio/mpeg"),
                    json=payload,
                )
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise provider_error_from(PROVIDER, exc) from exc

    async def list_voices(self) -> list[dict[str, Any]]:
        """
        List the voices available to this account.

        API Endpoint: GET /v1/voices
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/v1/voices",
                    headers=self._get_headers(),
                )
                response.raise_for_status()
                return response.json().get("voices", [])
        except httpx.HTTPError as exc:
            raise provider_error_from(PROVIDER, exc) from exc
