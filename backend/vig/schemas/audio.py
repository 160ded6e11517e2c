"""Text-to-speech schemas."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from vig.models.generation import GenerationStatus
from vig.schemas.common import CamelModel, Pagination

DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"
DEFAULT_MODEL_ID = "eleven_monolingual_v1"


class TTSRequest(BaseModel):
    """Text is optional here so the balance check runs before input validation."""
    text: str | None = None
    voice_id: str = DEFAULT_VOICE_ID
    model_id: str = DEFAULT_MODEL_ID


class AudioItem(CamelModel):
    id: int
    text: str
    voice_id: str
    model_id: str
    stream_url: str
    download_url: str
    generated_at: datetime


class TTSResponse(CamelModel):
    message: str
    audio: AudioItem
    points_remaining: int


class HistoryItem(CamelModel):
    id: int
    text: str | None
    voice_id: str | None = None
    model_id: str | None = None
    status: GenerationStatus
    stream_url: str | None = None
    download_url: str | None = None
    error_message: str | None = None
    generated_at: datetime | None = None


class HistoryResponse(CamelModel):
    message: str
    audio_history: list[HistoryItem]
    pagination: Pagination


class Voice(BaseModel):
    """ElevenLabs voice summary (provider field names kept)."""
    voice_id: str
    name: str
    category: str | None = None
    description: str | None = None
    preview_url: str | None = None
    labels: dict[str, Any] | None = None


class VoicesResponse(BaseModel):
    message: str
    voices: list[Voice]
