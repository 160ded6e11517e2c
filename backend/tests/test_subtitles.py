"""Unit tests for SRT rendering and ASS style helpers."""
import pytest

from vig.errors import ValidationError
from vig.schemas.caption import CaptionOptions
from vig.services.caption_service import captions_from_transcript, parse_caption_options
from vig.services.media import SubtitleBurner
from vig.services.media.subtitles import (
    build_caption_windows,
    build_force_style,
    format_srt_timestamp,
    render_srt,
    to_ass_color,
)
from vig.services.providers.models import Transcript, TranscriptWord


def words(*texts):
    return [TranscriptWord(word=text, start=float(i), end=i + 0.5) for i, text in enumerate(texts)]


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00:00,000"),
        (1.5, "00:00:01,500"),
        (61.042, "00:01:01,042"),
        (3725.999, "01:02:05,999"),
        (-2, "00:00:00,000"),
    ],
)
def test_format_srt_timestamp(seconds, expected):
    assert format_srt_timestamp(seconds) == expected


def test_windows_split_on_word_count():
    windows = build_caption_windows(words("a", "b", "c", "d", "e"), 2)

    assert [w.text for w in windows] == ["a b", "c d", "e"]
    assert (windows[1].start, windows[1].end) == (2.0, 3.5)
    assert windows[2].start == 4.0


def test_windows_prefer_punctuated_words():
    word = TranscriptWord(word="hello", punctuated_word="Hello,", start=0, end=1)

    assert build_caption_windows([word], 8)[0].text == "Hello,"


def test_windows_reject_non_positive_size():
    with pytest.raises(ValueError):
        build_caption_windows(words("a"), 0)


def test_render_srt_numbers_blocks():
    srt = render_srt(build_caption_windows(words("one", "two", "three"), 2))

    assert srt == (
        "1\n00:00:00,000 --> 00:00:01,500\none two\n"
        "\n"
        "2\n00:00:02,000 --> 00:00:02,500\nthree\n"
    )


def test_render_srt_empty():
    assert render_srt([]) == ""


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#FFFFFF", "&H00FFFFFF"),
        ("#ff8000", "&H000080FF"),
        ("112233", "&H00332211"),
        ("rgba(0,0,0,1)", "&H00000000"),
        ("rgba(255, 0, 0, 0)", "&HFF0000FF"),
        ("rgb(0,128,255)", "&H00FF8000"),
        ("not-a-colour", "&H00ABCDEF"),
    ],
)
def test_to_ass_color(value, expected):
    assert to_ass_color(value, "&H00ABCDEF") == expected


def test_force_style_uses_options():
    options = CaptionOptions(font_size=32, font_family="Noto Sans", font_color="#00FF00", position="center")

    style = build_force_style(options)

    assert style.split(",") == [
        "FontName=Noto Sans",
        "FontSize=32",
        "PrimaryColour=&H0000FF00",
        style.split(",")[3],
        "BorderStyle=3",
        "Alignment=5",
    ]
    assert style.split(",")[3].startswith("BackColour=&H")


def test_parse_caption_options_applies_defaults_for_blank_fields():
    options = parse_caption_options({"fontSize": "", "position": None, "maxWordsPerLine": "4"})

    assert options.font_size == 24
    assert options.position == "bottom"
    assert options.max_words_per_line == 4
    assert options.language == "hi"


@pytest.mark.parametrize(
    "raw",
    [
        {"fontFamily": "Arial'; rm -rf"},
        {"fontColor": "red"},
        {"position": "left"},
        {"maxWordsPerLine": "0"},
    ],
)
def test_parse_caption_options_rejects_bad_values(raw):
    with pytest.raises(ValidationError):
        parse_caption_options(raw)


def test_captions_fall_back_to_whole_transcript_without_paragraphs():
    transcript = Transcript(transcript="just words", words=words("just", "words"))

    assert [c.model_dump() for c in captions_from_transcript(transcript)] == [
        {"start": 0.0, "end": 1.5, "text": "just words"}
    ]


def test_burner_command_uses_subtitles_filter(tmp_path):
    burner = SubtitleBurner(ffmpeg_path="ffmpeg")

    command = burner.build_command(tmp_path / "in.mp4", tmp_path / "subs.srt", tmp_path / "out.mp4", "FontSize=24")

    assert command[0] == "ffmpeg"
    assert str(tmp_path / "out.mp4") == command[-1]
    vf = command[command.index("-vf") + 1]
    assert vf.startswith("subtitles=")
    assert "force_style='FontSize=24'" in vf
