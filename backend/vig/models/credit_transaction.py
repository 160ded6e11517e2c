"""Credit ledger model."""
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from vig.database import Base


class CreditReason(str, Enum):
    SIGNUP_BONUS = "signup_bonus"
    FREE_CREDITS = "free_credits"
    GENERATION = "generation"
    PURCHASE = "purchase"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class CreditTransaction(Base):
    """Append-only record of every point balance change."""

    __tablename__ = "credit_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[CreditReason] = mapped_column(SQLEnum(CreditReason), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
