"""Subtitle rendering and ffmpeg muxing."""
from vig.services.media.ffmpeg import MediaProcessingError, SubtitleBurner
from vig.services.media.subtitles import (
    CaptionWindow,
    build_caption_windows,
    build_force_style,
    render_srt,
    to_ass_color,
)

__all__ = [
    "MediaProcessingError",
    "SubtitleBurner",
    "CaptionWindow",
    "build_caption_windows",
    "build_force_style",
    "render_srt",
    "to_ass_color",
]
