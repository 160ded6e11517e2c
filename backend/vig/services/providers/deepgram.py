"""Deepgram speech-to-text client."""
import httpx

from vig.config import get_settings
from vig.services.providers.base import provider_error_from
from vig.services.providers.models import Transcript

settings = get_settings()

PROVIDER = "Deepgram"
MODEL = "nova-2"


class DeepgramClient:
    """Client for the Deepgram pre-recorded transcription API."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key if api_key is not None else settings.deepgram_api_key
        self.base_url = base_url or settings.deepgram_base_url
        self.timeout = httpx.Timeout(30.0, read=300.0)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def transcribe(self, content: bytes, content_type: str, language: str) -> Transcript:
        """
        Transcribe an audio or video payload.

        API Endpoint: POST /v1/listen

        Args:
            content: Raw media bytes
            content_type: MIME type of the upload
            language: Language hint (e.g. "hi", "en")

        Returns:
            Transcript with paragraphs, word timings and detected language
        """
        params = {
            "model": MODEL,
            "language": language,
            "smart_format": "true",
            "punctuate": "true",
            "paragraphs": "true",
            "utterances": "true",
            "diarize": "true",
            "detect_language": "true",
        }
        headers = {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": content_type,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/v1/listen",
                    params=params,
                    headers=headers,
                    content=content,
                )
                response.raise_for_status()
                return Transcript.from_listen_response(response.json())
        except httpx.HTTPError as exc:
            raise provider_error_from(PROVIDER, exc) from exc
