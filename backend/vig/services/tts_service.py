"""Text-to-speech generation service."""
import logging
from math import ceil

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import ValidationError
from vig.models.generation import Generation, GenerationKind, GenerationStatus
from vig.models.user import User
from vig.schemas.audio import AudioItem, HistoryItem, HistoryResponse, TTSRequest, TTSResponse, Voice
from vig.schemas.common import Pagination
from vig.services.metering import MeteredGeneration
from vig.services.providers import ElevenLabsClient, ProviderError
from vig.services.providers.elevenlabs import FALLBACK_VOICES

settings = get_settings()
logger = logging.getLogger(__name__)


def audio_locators(name: str) -> tuple[str, str]:
    """Stream and download URLs for a stored audio artifact."""
    prefix = f"{settings.api_prefix}/audio"
    return f"{prefix}/stream/{name}", f"{prefix}/download/{name}"


class TTSService:
    """Service for metered ElevenLabs speech generation."""

    def __init__(self, db: AsyncSession, client: ElevenLabsClient):
        self.db = db
        self.client = client

    async def generate(self, user: User, request: TTSRequest) -> TTSResponse:
        """Generate speech for `request.text`, charging one point on success."""
        flow = MeteredGeneration(self.db, user, GenerationKind.TTS)
        flow.ensure_balance()

        text = (request.text or "").strip()
        if not text:
            raise ValidationError("Text is required for text-to-speech generation")
        if len(request.text) > settings.max_tts_text_length:
            raise ValidationError(f"Text must be less than {settings.max_tts_text_length} characters")

        flow.ensure_configured(self.client.configured, "ELEVENLABS_API_KEY", "ElevenLabs API key not configured")

        options = {"voice_id": request.voice_id, "model_id": request.model_id}
        try:
            audio = await self.client.synthesize(request.text, request.voice_id, request.model_id)
        except ProviderError as exc:
            raise await flow.fail(
                exc,
                "TTS service temporarily unavailable. Please try again later or contact support.",
                input_text=request.text,
                options=options,
            )

        generation, artifact = await flow.succeed(
            audio,
            ext=".mp3",
            media_type="audio/mpeg",
            input_text=request.text,
            options=options,
        )
        stream_url, download_url = audio_locators(artifact.name)
        item = AudioItem(
            id=generation.id,
            text=request.text,
            voice_id=request.voice_id,
            model_id=request.model_id,
            stream_url=stream_url,
            download_url=download_url,
            generated_at=generation.created_at,
        )

        points_remaining = await flow.charge(generation, artifact)
        return TTSResponse(
            message="Text-to-speech audio generated successfully",
            audio=item,
            points_remaining=points_remaining,
        )

    async def list_voices(self) -> tuple[list[Voice], bool]:
        """
        List available voices.

        Returns:
            tuple: (voices, whether the built-in fallback list was used)
        """
        if not self.client.configured:
            return [Voice(**voice) for voice in FALLBACK_VOICES], True

        try:
            voices = await self.client.list_voices()
        except ProviderError:
            logger.warning("Falling back to the built-in voice list")
            return [Voice(**voice) for voice in FALLBACK_VOICES], True

        return [Voice.model_validate(voice) for voice in voices], False

    async def history(self, user: User, page: int = 1, limit: int = 10) -> HistoryResponse:
        """Paginated TTS generation history for `user`, newest first."""
        conditions = (Generation.user_id == user.id, Generation.kind == GenerationKind.TTS)

        total = await self.db.scalar(select(func.count()).select_from(Generation).where(*conditions)) or 0
        result = await self.db.execute(
            select(Generation)
            .where(*conditions)
            .order_by(Generation.created_at.desc(), Generation.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        items = []
        for record in result.scalars().all():
            options = record.options or {}
            stream_url = download_url = None
            if record.status == GenerationStatus.COMPLETED and record.artifact_name:
                stream_url, download_url = audio_locators(record.artifact_name)
            items.append(
                HistoryItem(
                    id=record.id,
                    text=record.input_text,
                    voice_id=options.get("voice_id"),
                    model_id=options.get("model_id"),
                    status=record.status,
                    stream_url=stream_url,
                    download_url=download_url,
                    error_message=record.error_message,
                    generated_at=record.created_at,
                )
            )

        return HistoryResponse(
            message="Audio history retrieved successfully",
            audio_history=items,
            pagination=Pagination(page=page, limit=limit, total=total, pages=ceil(total / limit) if total else 0),
        )
