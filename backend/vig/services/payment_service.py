"""Point pack checkout and idempotent payment reconciliation."""
import logging
import secrets
from datetime import datetime, timezone
from typing import Any

import stripe
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import ConfigurationError, Forbidden, NotFound, ServiceUnavailable, ValidationError
from vig.models.credit_transaction import CreditReason
from vig.models.payment import PaymentSession, PaymentStatus
from vig.models.user import User
from vig.schemas.payment import (
    CheckoutResponse,
    ConfirmResponse,
    PaymentHistoryItem,
    PaymentHistoryResponse,
    PointPack,
)
from vig.services.credit_service import CreditService
from vig.services.stripe_gateway import StripeGateway

settings = get_settings()
logger = logging.getLogger(__name__)

# points -> price in cents
POINT_PACKS: dict[int, int] = {
    10: 299,
    50: 999,
    200: 2999,
}

COMPLETED_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
EXPIRED_EVENTS = ("checkout.session.expired", "checkout.session.async_payment_failed")

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def list_point_packs() -> list[PointPack]:
    return [
        PointPack(
            points=points,
            amount_cents=amount,
            currency=settings.stripe_currency,
            label=f"{points} Points",
        )
        for points, amount in POINT_PACKS.items()
    ]


def _parse_points(value: Any) -> int:
    try:
        points = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid points amount")
    if points not in POINT_PACKS:
        raise ValidationError("Invalid points amount")
    return points


class PaymentService:
    """Creates checkout sessions and credits each paid session exactly once."""

    def __init__(self, db: AsyncSession, gateway: StripeGateway):
        self.db = db
        self.gateway = gateway
        self.credits = CreditService(db)

    def _require_gateway(self) -> None:
        if not self.gateway.configured:
            raise ConfigurationError("STRIPE_SECRET_KEY", "Stripe is not configured")

    async def create_checkout(self, user: User, points: int | None) -> CheckoutResponse:
        """Open a hosted checkout session for one of the fixed point packs."""
        amount = POINT_PACKS.get(points) if points is not None else None
        if amount is None:
            raise ValidationError("Invalid points pack selected")
        self._require_gateway()

        nonce = secrets.token_hex(16)
        frontend = settings.frontend_url.rstrip("/")
        try:
            session = await self.gateway.create_checkout_session(
                idempotency_key=nonce,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": settings.stripe_currency,
                            "product_data": {
                                "name": f"{points} Points",
                                "description": f"{points} credits for AI audio and caption generation",
                            },
                            "unit_amount": amount,
                        },
                        "quantity": 1,
                    }
                ],
                customer_email=user.email,
                client_reference_id=str(user.id),
                metadata={
                    "userId": str(user.id),
                    "points": str(points),
                    "nonce": nonce,
                },
                success_url=f"{frontend}/credits?status=success&session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{frontend}/credits?status=cancelled",
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout creation failed for user %s: %s", user.id, exc)
            raise ServiceUnavailable("Failed to create checkout session", details=str(exc))

        self.db.add(
            PaymentSession(
                provider_session_id=session["id"],
                user_id=user.id,
                points=points,
                amount_cents=amount,
                currency=settings.stripe_currency,
                nonce=nonce,
                status=PaymentStatus.PENDING,
            )
        )
        await self.db.flush()
        logger.info("Opened checkout session %s for user %s (%s points)", session["id"], user.id, points)

        return CheckoutResponse(url=session["url"], session_id=session["id"])

    async def _fetch_session(self, session_id: str) -> Any:
        try:
            return await self.gateway.retrieve_checkout_session(session_id)
        except stripe.InvalidRequestError:
            raise NotFound("Payment session not found")
        except stripe.StripeError as exc:
            logger.error("Stripe session lookup failed for %s: %s", session_id, exc)
            raise ServiceUnavailable("Payment provider unavailable", details=str(exc))

    async def confirm_by_client(self, user: User, session_id: str | None) -> ConfirmResponse:
        """Credit the caller after the checkout redirect, once per session."""
        if not session_id:
            raise ValidationError("Session ID is required")
        self._require_gateway()

        session = await self._fetch_session(session_id)
        if session.get("payment_status") != "paid":
            raise ValidationError("Payment not completed")

        metadata = session.get("metadata") or {}
        if str(metadata.get("userId")) != str(user.id):
            raise Forbidden("Unauthorized access to payment session")
        points = _parse_points(metadata.get("points"))

        applied, balance = await self._apply_credit(session, user.id, points, via="client")
        return ConfirmResponse(
            message="Credits updated successfully" if applied else "Credits already applied for this session",
            points_added=points if applied else 0,
            total_points=balance,
            already_credited=not applied,
        )

    async def handle_webhook(self, payload: bytes, sig_header: str | None) -> dict:
        """Verify a signed webhook and reconcile the session it refers to."""
        if not self.gateway.webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET", "Stripe webhook secret is not configured")
        if not sig_header:
            raise ValidationError("Missing Stripe signature")

        try:
            event = self.gateway.construct_event(payload, sig_header)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected webhook: %s", exc.__class__.__name__)
            raise ValidationError("Webhook signature verification failed")

        event_type = event["type"]
        session_id = event["data"]["object"].get("id")

        if event_type in COMPLETED_EVENTS:
            self._require_gateway()
            session = await self._fetch_session(session_id)
            if session.get("payment_status") != "paid":
                logger.info("Webhook %s for unpaid session %s ignored", event_type, session_id)
                return {"received": True}

            metadata = session.get("metadata") or {}
            try:
                user_id = int(metadata.get("userId"))
            except (TypeError, ValueError):
                logger.warning("Session %s has no usable userId metadata", session_id)
                return {"received": True}
            points = _parse_points(metadata.get("points"))
            if await self.credits.get_balance(user_id) is None:
                logger.warning("Session %s references unknown user %s", session_id, user_id)
                return {"received": True}

            await self._apply_credit(session, user_id, points, via="webhook")

        elif event_type in EXPIRED_EVENTS:
            await self.db.execute(
                update(PaymentSession)
                .where(
                    PaymentSession.provider_session_id == session_id,
                    PaymentSession.credited_at.is_(None),
                )
                .values(status=PaymentStatus.CANCELLED)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            logger.info("Checkout session %s cancelled", session_id)

        return {"received": True}

    async def _ensure_session_row(self, session: Any, user_id: int, points: int) -> None:
        """Insert the payment session if absent (sessions opened elsewhere, or lost rows)."""
        dialect = self.db.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Unsupported database dialect: {dialect}")

        metadata = session.get("metadata") or {}
        stmt = insert(PaymentSession).values(
            provider_session_id=session["id"],
            user_id=user_id,
            points=points,
            amount_cents=session.get("amount_total"),
            currency=session.get("currency"),
            nonce=metadata.get("nonce"),
            status=PaymentStatus.PAID,
        ).on_conflict_do_nothing(index_elements=["provider_session_id"])
        await self.db.execute(stmt)

    async def _apply_credit(self, session: Any, user_id: int, points: int, via: str) -> tuple[bool, int]:
        """
        Credit `points` for a paid session unless it was already credited.

        Returns:
            tuple: (whether this call applied the credit, current balance)
        """
        session_id = session["id"]
        await self._ensure_session_row(session, user_id, points)

        result = await self.db.execute(
            update(PaymentSession)
            .where(
                PaymentSession.provider_session_id == session_id,
                PaymentSession.credited_at.is_(None),
            )
            .values(
                status=PaymentStatus.CREDITED,
                credited_at=datetime.now(timezone.utc),
                credited_via=via,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.commit()
            logger.info("Session %s already credited; %s confirmation ignored", session_id, via)
            balance = await self.credits.get_balance(user_id)
            return False, balance or 0

        balance = await self.credits.credit(user_id, points, CreditReason.PURCHASE, reference=session_id)
        await self.db.commit()
        logger.info("Credited %s points to user %s for session %s via %s", points, user_id, session_id, via)
        return True, balance

    async def history(self, user: User) -> PaymentHistoryResponse:
        result = await self.db.execute(
            select(PaymentSession)
            .where(PaymentSession.user_id == user.id)
            .order_by(PaymentSession.created_at.desc(), PaymentSession.id.desc())
        )
        payments = [
            PaymentHistoryItem(
                id=row.provider_session_id,
                amount=row.amount_cents,
                currency=row.currency,
                status=row.status,
                points=row.points,
                created_at=row.created_at,
                credited_at=row.credited_at,
            )
            for row in result.scalars().all()
        ]
        return PaymentHistoryResponse(message="Payment history retrieved successfully", payments=payments)
