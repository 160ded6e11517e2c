"""Generation request history model."""
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from vig.database import Base


class GenerationKind(str, Enum):
    """Metered operation kinds."""
    TTS = "tts"
    CAPTION = "caption"
    CAPTION_VIDEO = "caption_video"


class GenerationStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class Generation(Base):
    """One metered generation attempt that reached a provider."""

    __tablename__ = "generations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    kind: Mapped[GenerationKind] = mapped_column(SQLEnum(GenerationKind), nullable=False, index=True)
    status: Mapped[GenerationStatus] = mapped_column(SQLEnum(GenerationStatus), nullable=False)

    # Input
    input_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    input_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    options: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True
    )

    # Output
    artifact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True
    )
