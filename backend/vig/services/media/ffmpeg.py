"""ffmpeg subtitle burn-in."""
import asyncio
import logging
import subprocess
from pathlib import Path

import imageio_ffmpeg

from vig.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class MediaProcessingError(Exception):
    """ffmpeg could not render the output video."""


def _escape_filter_path(path: Path) -> str:
    # Filter-graph escaping for the subtitles= argument.
    return (
        path.resolve().as_posix()
        .replace("\\", "\\\\")
        .replace(":", "\\:")
        .replace("'", "\\'")
    )


class SubtitleBurner:
    """Renders an SRT file onto a video with ffmpeg."""

    def __init__(self, ffmpeg_path: str | None = None, timeout: int | None = None):
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path or imageio_ffmpeg.get_ffmpeg_exe()
        self.timeout = timeout or settings.ffmpeg_timeout_seconds

    def build_command(self, input_path: Path, srt_path: Path, output_path: Path, force_style: str) -> list[str]:
        video_filter = f"subtitles={_escape_filter_path(srt_path)}:force_style='{force_style}'"
        return [
            self.ffmpeg_path,
            "-y",
            "-i", str(input_path),
            "-vf", video_filter,
            "-c:a", "copy",
            "-movflags", "+faststart",
            str(output_path),
        ]

    def _run(self, cmd: list[str]) -> None:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            logger.error("ffmpeg timed out after %ss", self.timeout)
            raise MediaProcessingError(f"ffmpeg timed out after {self.timeout}s") from exc
        except OSError as exc:
            logger.error("ffmpeg could not be started: %s", exc)
            raise MediaProcessingError(f"ffmpeg could not be started: {exc}") from exc

        if result.returncode != 0:
            logger.error("ffmpeg failed (code %s): %s", result.returncode, result.stderr[-2000:])
            raise MediaProcessingError(f"ffmpeg exited with code {result.returncode}")

    async def burn(self, input_path: Path, srt_path: Path, output_path: Path, force_style: str) -> Path:
        """Render subtitles onto `input_path`, writing `output_path`."""
        cmd = self.build_command(input_path, srt_path, output_path, force_style)
        logger.info("Burning subtitles into %s", input_path.name)
        await asyncio.to_thread(self._run, cmd)

        if not output_path.exists():
            raise MediaProcessingError("ffmpeg produced no output file")
        return output_path
