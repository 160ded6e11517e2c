"""Caption generation service (Deepgram transcription + ffmpeg burn-in)."""
import logging
from typing import Any

import aiofiles
from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import ValidationError
from vig.models.generation import GenerationKind
from vig.models.user import User
from vig.schemas.caption import (
    Caption,
    CaptionData,
    CaptionMetadata,
    CaptionOptions,
    CaptionResponse,
    NoSpeechData,
    NoSpeechResponse,
)
from vig.services.media import (
    MediaProcessingError,
    SubtitleBurner,
    build_caption_windows,
    build_force_style,
    render_srt,
)
from vig.services.metering import MeteredGeneration
from vig.services.providers import DeepgramClient, ProviderError
from vig.services.providers.models import Transcript
from vig.utils.storage import storage

settings = get_settings()
logger = logging.getLogger(__name__)

NO_SPEECH_MESSAGE = "No speech detected in video"


def format_size(num_bytes: int) -> str:
    """Human-readable size such as `100 MB` or `10 bytes`."""
    if num_bytes < 1024:
        return f"{num_bytes} bytes"
    value = float(num_bytes)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            break
    return f"{round(value, 1):g} {unit}"


def parse_caption_options(raw: dict[str, Any]) -> CaptionOptions:
    """Validate form fields against the recognized options; absent keys take defaults."""
    provided = {key: value for key, value in raw.items() if value not in (None, "")}
    try:
        return CaptionOptions.model_validate(provided)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid caption options",
            details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()],
        )


def captions_from_transcript(transcript: Transcript) -> list[Caption]:
    """Paragraph-level captions, or one caption spanning the whole transcript."""
    captions = [
        Caption(start=paragraph.start, end=paragraph.end, text=paragraph.text)
        for paragraph in transcript.paragraphs
    ]
    if not captions and transcript.transcript:
        end = transcript.words[-1].end if transcript.words else 0.0
        captions.append(Caption(start=0.0, end=end, text=transcript.transcript))
    return captions


class CaptionService:
    """Service for metered caption generation."""

    def __init__(self, db: AsyncSession, client: DeepgramClient):
        self.db = db
        self.client = client

    async def _read_video(self, video: UploadFile | None) -> bytes:
        if video is None or not video.filename:
            raise ValidationError("No video file uploaded")
        if not (video.content_type or "").startswith("video/"):
            raise ValidationError("Only video files are allowed")

        content = await video.read(settings.max_video_upload_size + 1)
        if not content:
            raise ValidationError("Uploaded video is empty")
        if len(content) > settings.max_video_upload_size:
            raise ValidationError(
                f"File too large. Maximum size: {format_size(settings.max_video_upload_size)}"
            )
        return content

    async def _prepare(
        self, user: User, kind: GenerationKind, video: UploadFile | None, raw_options: dict[str, Any]
    ) -> tuple[MeteredGeneration, bytes, CaptionOptions]:
        flow = MeteredGeneration(self.db, user, kind)
        flow.ensure_balance()

        options = parse_caption_options(raw_options)
        content = await self._read_video(video)

        flow.ensure_configured(self.client.configured, "DEEPGRAM_API_KEY", "Deepgram API key not configured")
        return flow, content, options

    async def _transcribe(
        self, flow: MeteredGeneration, video: UploadFile, content: bytes, options: CaptionOptions
    ) -> Transcript:
        try:
            return await self.client.transcribe(content, video.content_type, options.language)
        except ProviderError as exc:
            raise await flow.fail(
                exc,
                "Transcription service temporarily unavailable. Please try again later.",
                input_filename=video.filename,
                options=options.model_dump(by_alias=True),
            )

    async def generate_captions(
        self, user: User, video: UploadFile | None, raw_options: dict[str, Any]
    ) -> CaptionResponse:
        """Transcribe an uploaded video into timed captions."""
        flow, content, options = await self._prepare(user, GenerationKind.CAPTION, video, raw_options)
        transcript = await self._transcribe(flow, video, content, options)

        captions = captions_from_transcript(transcript)
        srt = render_srt(build_caption_windows(transcript.words, options.max_words_per_line))

        generation, artifact = await flow.succeed(
            srt.encode("utf-8") if srt else None,
            ext=".srt",
            media_type="application/x-subrip",
            input_filename=video.filename,
            options=options.model_dump(by_alias=True),
        )
        data = CaptionData(
            transcript=transcript.transcript,
            captions=captions,
            options=options,
            subtitle_url=f"{settings.api_prefix}/caption/download/{artifact.name}" if artifact else None,
            metadata=CaptionMetadata(
                confidence=transcript.confidence,
                language=options.language,
                detected_language=transcript.detected_language or options.language,
            ),
        )

        points_remaining = await flow.charge(generation, artifact)
        return CaptionResponse(
            message="Captions generated successfully",
            data=data,
            points_remaining=points_remaining,
        )

    async def generate_captioned_video(
        self,
        user: User,
        video: UploadFile | None,
        raw_options: dict[str, Any],
        burner: SubtitleBurner,
    ) -> bytes | NoSpeechResponse:
        """
        Burn word-chunked captions into the uploaded video.

        Returns:
            MP4 bytes, or a NoSpeechResponse (nothing charged) when no words were recognised
        """
        flow, content, options = await self._prepare(user, GenerationKind.CAPTION_VIDEO, video, raw_options)
        transcript = await self._transcribe(flow, video, content, options)

        if not transcript.words:
            logger.info("No speech detected in %s for user %s", video.filename, user.id)
            return NoSpeechResponse(
                message=NO_SPEECH_MESSAGE,
                data=NoSpeechData(transcript=transcript.transcript, options=options),
            )

        windows = build_caption_windows(transcript.words, options.max_words_per_line)
        workdir = storage.create_workdir()
        try:
            input_path = workdir / "input.mp4"
            srt_path = workdir / "captions.srt"
            output_path = workdir / "output.mp4"

            async with aiofiles.open(input_path, "wb") as f:
                await f.write(content)
            async with aiofiles.open(srt_path, "w", encoding="utf-8") as f:
                await f.write(render_srt(windows))

            try:
                await burner.burn(input_path, srt_path, output_path, build_force_style(options))
            except MediaProcessingError as exc:
                raise await flow.fail(
                    exc,
                    "Video processing failed. Please try again later.",
                    input_filename=video.filename,
                    options=options.model_dump(by_alias=True),
                )

            async with aiofiles.open(output_path, "rb") as f:
                rendered = await f.read()
        finally:
            storage.remove_workdir(workdir)

        generation, _ = await flow.succeed(
            input_filename=video.filename,
            input_text=transcript.transcript,
            options=options.model_dump(by_alias=True),
        )
        await flow.charge(generation)
        return rendered
