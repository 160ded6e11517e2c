"""SRT generation and ASS style helpers for burned-in captions."""
import re
from collections.abc import Sequence
from dataclasses import dataclass

from vig.schemas.caption import CaptionOptions
from vig.services.providers.models import TranscriptWord

# ASS numpad alignment
ALIGNMENT = {"bottom": 2, "center": 5, "top": 8}

DEFAULT_PRIMARY_COLOUR = "&H00FFFFFF"
DEFAULT_BACK_COLOUR = "&H80000000"

_HEX = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_RGBA = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*([0-9.]+)\s*)?\)$"
)


@dataclass(frozen=True)
class CaptionWindow:
    """One subtitle line shown between `start` and `end` seconds."""
    start: float
    end: float
    text: str


def build_caption_windows(words: Sequence[TranscriptWord], max_words_per_line: int) -> list[CaptionWindow]:
    """Group word timings into consecutive chunks of at most `max_words_per_line` words."""
    if max_words_per_line < 1:
        raise ValueError("max_words_per_line must be at least 1")

    windows = []
    for i in range(0, len(words), max_words_per_line):
        chunk = words[i:i + max_words_per_line]
        windows.append(
            CaptionWindow(
                start=chunk[0].start,
                end=chunk[-1].end,
                text=" ".join(word.text for word in chunk),
            )
        )
    return windows


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS,mmm."""
    total_ms = max(0, int(round(seconds * 1000)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def render_srt(windows: Sequence[CaptionWindow]) -> str:
    blocks = []
    for index, window in enumerate(windows, start=1):
        blocks.append(
            f"{index}\n"
            f"{format_srt_timestamp(window.start)} --> {format_srt_timestamp(window.end)}\n"
            f"{window.text}\n"
        )
    return "\n".join(blocks)


def to_ass_color(value: str, default: str) -> str:
    """Convert `#RRGGBB` or `rgba(r,g,b,a)` to an ASS `&HAABBGGRR` colour.

    ASS alpha is inverted: 00 is opaque, FF fully transparent.
    """
    value = value.strip()

    match = _HEX.match(value)
    if match:
        r, g, b = match.groups()
        return f"&H00{b}{g}{r}".upper()

    match = _RGBA.match(value)
    if match:
        r, g, b = (min(int(c), 255) for c in match.groups()[:3])
        alpha = float(match.group(4)) if match.group(4) is not None else 1.0
        alpha = min(max(alpha, 0.0), 1.0)
        ass_alpha = round((1.0 - alpha) * 255)
        return f"&H{ass_alpha:02X}{b:02X}{g:02X}{r:02X}"

    return default


def build_force_style(options: CaptionOptions) -> str:
    """Build the `force_style` argument of ffmpeg's subtitles filter."""
    parts = [
        f"FontName={options.font_family}",
        f"FontSize={options.font_size}",
        f"PrimaryColour={to_ass_color(options.font_color, DEFAULT_PRIMARY_COLOUR)}",
        f"BackColour={to_ass_color(options.background_color, DEFAULT_BACK_COLOUR)}",
        "BorderStyle=3",
        f"Alignment={ALIGNMENT[options.position]}",
    ]
    return ",".join(parts)
