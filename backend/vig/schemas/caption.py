"""Caption generation schemas."""
import re
from typing import Literal

from pydantic import Field, field_validator

from vig.schemas.common import CamelModel

_HEX_COLOR = re.compile(r"^#?[0-9a-fA-F]{6}$")
_RGBA_COLOR = re.compile(r"^rgba?\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*(,\s*[0-9.]+\s*)?\)$")


class CaptionOptions(CamelModel):
    """Recognized caption styling options with their defaults."""
    language: str = Field("hi", min_length=2, max_length=16)
    font_size: int = Field(24, ge=8, le=96)
    font_family: str = Field("Arial", min_length=1, max_length=64)
    font_color: str = "#FFFFFF"
    background_color: str = "rgba(0,0,0,0.7)"
    position: Literal["top", "center", "bottom"] = "bottom"
    max_words_per_line: int = Field(8, ge=1, le=20)

    @field_validator("font_color", "background_color")
    @classmethod
    def validate_color(cls, value: str) -> str:
        value = value.strip()
        if not (_HEX_COLOR.match(value) or _RGBA_COLOR.match(value)):
            raise ValueError("must be #RRGGBB or rgba(r,g,b,a)")
        return value

    @field_validator("font_family")
    @classmethod
    def validate_font_family(cls, value: str) -> str:
        # Embedded into an ffmpeg filter argument.
        if any(ch in value for ch in "',:;=\\[]"):
            raise ValueError("contains unsupported characters")
        return value


class Caption(CamelModel):
    start: float
    end: float
    text: str


class CaptionMetadata(CamelModel):
    confidence: float | None = None
    language: str
    detected_language: str | None = None


class CaptionData(CamelModel):
    transcript: str
    captions: list[Caption]
    options: CaptionOptions
    subtitle_url: str | None = None
    metadata: CaptionMetadata


class CaptionResponse(CamelModel):
    message: str
    data: CaptionData
    points_remaining: int


class NoSpeechData(CamelModel):
    transcript: str
    options: CaptionOptions


class NoSpeechResponse(CamelModel):
    message: str
    data: NoSpeechData
