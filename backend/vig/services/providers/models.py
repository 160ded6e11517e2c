"""Provider response models."""
from typing import Any

from pydantic import BaseModel, Field


class TranscriptWord(BaseModel):
    """Single recognised word with timing."""
    word: str
    start: float
    end: float
    confidence: float | None = None
    punctuated_word: str | None = None

    @property
    def text(self) -> str:
        return self.punctuated_word or self.word


class TranscriptSentence(BaseModel):
    text: str
    start: float | None = None
    end: float | None = None


class TranscriptParagraph(BaseModel):
    start: float
    end: float
    sentences: list[TranscriptSentence] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(sentence.text for sentence in self.sentences)


class Transcript(BaseModel):
    """The first channel / first alternative of a Deepgram listen response."""
    transcript: str = ""
    confidence: float | None = None
    words: list[TranscriptWord] = Field(default_factory=list)
    paragraphs: list[TranscriptParagraph] = Field(default_factory=list)
    detected_language: str | None = None

    @classmethod
    def from_listen_response(cls, payload: dict[str, Any]) -> "Transcript":
        channels = (payload.get("results") or {}).get("channels") or []
        if not channels:
            return cls()
        channel = channels[0]
        alternatives = channel.get("alternatives") or []
        alternative = alternatives[0] if alternatives else {}
        return cls(
            transcript=alternative.get("transcript") or "",
            confidence=alternative.get("confidence"),
            words=alternative.get("words") or [],
            paragraphs=(alternative.get("paragraphs") or {}).get("paragraphs") or [],
            detected_language=channel.get("detected_language"),
        )
