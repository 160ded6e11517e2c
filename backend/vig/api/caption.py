"""Caption generation API routes."""
from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, Response

from vig.api.deps import Burner, CurrentUser, DbSession, Deepgram
from vig.schemas.caption import CaptionResponse, NoSpeechResponse
from vig.services.artifact_service import ArtifactService
from vig.services.caption_service import CaptionService
from vig.utils.rate_limiter import rate_limit_strict

router = APIRouter()


def _options(
    language: str | None,
    font_size: str | None,
    font_family: str | None,
    font_color: str | None,
    background_color: str | None,
    position: str | None,
    max_words_per_line: str | None,
) -> dict:
    return {
        "language": language,
        "fontSize": font_size,
        "fontFamily": font_family,
        "fontColor": font_color,
        "backgroundColor": background_color,
        "position": position,
        "maxWordsPerLine": max_words_per_line,
    }


@router.post("/generate", response_model=CaptionResponse)
@rate_limit_strict()
async def generate_captions(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    client: Deepgram,
    video: UploadFile | None = File(None),
    language: str | None = Form(None),
    font_size: str | None = Form(None, alias="fontSize"),
    font_family: str | None = Form(None, alias="fontFamily"),
    font_color: str | None = Form(None, alias="fontColor"),
    background_color: str | None = Form(None, alias="backgroundColor"),
    position: str | None = Form(None),
    max_words_per_line: str | None = Form(None, alias="maxWordsPerLine"),
):
    """Transcribe an uploaded video into timed captions (costs one point)."""
    options = _options(language, font_size, font_family, font_color, background_color, position, max_words_per_line)
    return await CaptionService(db, client).generate_captions(current_user, video, options)


@router.post(
    "/generate-video",
    response_class=Response,
    responses={200: {"content": {"video/mp4": {}}, "description": "Video with burned-in captions"}},
)
@rate_limit_strict()
async def generate_video_with_captions(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    client: Deepgram,
    burner: Burner,
    video: UploadFile | None = File(None),
    language: str | None = Form(None),
    font_size: str | None = Form(None, alias="fontSize"),
    font_family: str | None = Form(None, alias="fontFamily"),
    font_color: str | None = Form(None, alias="fontColor"),
    background_color: str | None = Form(None, alias="backgroundColor"),
    position: str | None = Form(None),
    max_words_per_line: str | None = Form(None, alias="maxWordsPerLine"),
):
    """Return the uploaded video with captions burned in (costs one point)."""
    options = _options(language, font_size, font_family, font_color, background_color, position, max_words_per_line)
    result = await CaptionService(db, client).generate_captioned_video(current_user, video, options, burner)

    if isinstance(result, NoSpeechResponse):
        return Response(
            content=result.model_dump_json(by_alias=True),
            media_type="application/json",
        )

    return Response(
        content=result,
        media_type="video/mp4",
        headers={"Content-Disposition": 'attachment; filename="video_with_captions.mp4"'},
    )


@router.get("/download/{file_name}")
async def download_subtitles(file_name: str, current_user: CurrentUser, db: DbSession):
    """Download the SRT file produced by caption generation."""
    artifacts = ArtifactService(db)
    artifact, path = await artifacts.get_for_user(file_name, current_user.id, "Subtitle file not found")
    await artifacts.mark_downloaded(artifact)
    return FileResponse(path, media_type=artifact.media_type, filename=artifact.name)
