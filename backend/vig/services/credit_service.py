"""Credit ledger service: atomic point balance changes."""
import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import NotFound
from vig.models.credit_transaction import CreditReason, CreditTransaction
from vig.models.user import User

settings = get_settings()
logger = logging.getLogger(__name__)


class CreditService:
    """Service for reading and mutating point balances.

    Every mutation is a single conditional UPDATE so concurrent requests for the
    same user can never drive the balance below zero or apply a grant twice.
    Callers own the transaction (commit / rollback).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, user_id: int) -> int | None:
        return await self.db.scalar(select(User.points).where(User.id == user_id))

    async def debit(
        self,
        user_id: int,
        amount: int = 1,
        reason: CreditReason = CreditReason.GENERATION,
        reference: str | None = None,
    ) -> int | None:
        """
        Take `amount` points if the balance covers it.

        Returns:
            The new balance, or None when the balance was insufficient.
        """
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.points >= amount)
            .values(points=User.points - amount)
            .returning(User.points)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            return None

        await self._record(user_id, -amount, reason, reference)
        return new_balance

    async def credit(
        self,
        user_id: int,
        amount: int,
        reason: CreditReason,
        reference: str | None = None,
    ) -> int:
        """Add `amount` points and return the new balance."""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(points=User.points + amount)
            .returning(User.points)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise NotFound("User not found")

        await self._record(user_id, amount, reason, reference)
        return new_balance

    async def grant_free_credits(self, user_id: int) -> int | None:
        """
        Apply the one-time free credit grant.

        Returns:
            The new balance if this call performed the grant, None if the user
            had already received it.
        """
        amount = settings.signup_bonus_points
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.has_received_free_credits.is_(False))
            .values(points=User.points + amount, has_received_free_credits=True)
            .returning(User.points)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            return None

        await self._record(user_id, amount, CreditReason.FREE_CREDITS)
        logger.info("Granted %s free credits to user %s", amount, user_id)
        return new_balance

    async def list_transactions(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> tuple[list[CreditTransaction], int]:
        total = await self.db.scalar(
            select(func.count()).select_from(CreditTransaction).where(CreditTransaction.user_id == user_id)
        )
        result = await self.db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def _record(
        self, user_id: int, amount: int, reason: CreditReason, reference: str | None = None
    ) -> None:
        self.db.add(CreditTransaction(user_id=user_id, amount=amount, reason=reason, reference=reference))
        await self.db.flush()
