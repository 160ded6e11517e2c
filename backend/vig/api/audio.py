"""Text-to-speech API routes."""
from fastapi import APIRouter, Query, Request
from fastapi.responses import FileResponse

from vig.api.deps import CurrentUser, DbSession, ElevenLabs
from vig.schemas.audio import HistoryResponse, TTSRequest, TTSResponse, VoicesResponse
from vig.services.artifact_service import ArtifactService
from vig.services.tts_service import TTSService
from vig.utils.rate_limiter import rate_limit_strict

router = APIRouter()

AUDIO_NOT_FOUND = "Audio file not found"


@router.get("/voices", response_model=VoicesResponse)
async def get_voices(db: DbSession, client: ElevenLabs):
    """List available voices (public)."""
    voices, fallback = await TTSService(db, client).list_voices()
    message = "Voices retrieved successfully (fallback)" if fallback else "Voices retrieved successfully"
    return VoicesResponse(message=message, voices=voices)


@router.post("/generate", response_model=TTSResponse)
@rate_limit_strict()
async def generate_audio(
    request: Request,
    body: TTSRequest,
    current_user: CurrentUser,
    db: DbSession,
    client: ElevenLabs,
):
    """Generate speech from text (costs one point)."""
    return await TTSService(db, client).generate(current_user, body)


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    current_user: CurrentUser,
    db: DbSession,
    client: ElevenLabs,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Get the current user's text-to-speech history."""
    return await TTSService(db, client).history(current_user, page, limit)


@router.get("/stream/{file_name}")
async def stream_audio(file_name: str, current_user: CurrentUser, db: DbSession):
    """Stream a generated audio file inline (supports range requests)."""
    artifact, path = await ArtifactService(db).get_for_user(file_name, current_user.id, AUDIO_NOT_FOUND)
    return FileResponse(
        path,
        media_type=artifact.media_type,
        headers={"Accept-Ranges": "bytes", "Cache-Control": "no-cache"},
    )


@router.get("/download/{file_name}")
async def download_audio(file_name: str, current_user: CurrentUser, db: DbSession):
    """Download a generated audio file; it expires shortly afterwards."""
    artifacts = ArtifactService(db)
    artifact, path = await artifacts.get_for_user(file_name, current_user.id, AUDIO_NOT_FOUND)
    await artifacts.mark_downloaded(artifact)
    return FileResponse(path, media_type=artifact.media_type, filename=artifact.name)
