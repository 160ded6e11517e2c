"""Payment API routes."""
from fastapi import APIRouter, Header, Request

from vig.api.deps import CurrentUser, DbSession, Stripe
from vig.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    ConfirmRequest,
    ConfirmResponse,
    PacksResponse,
    PaymentHistoryResponse,
)
from vig.services.payment_service import PaymentService, list_point_packs
from vig.utils.rate_limiter import rate_limit_default

router = APIRouter()


@router.get("/packs", response_model=PacksResponse)
async def get_packs():
    """List purchasable point packs (public)."""
    return PacksResponse(packs=list_point_packs())


@router.post("/create-checkout-session", response_model=CheckoutResponse)
@rate_limit_default()
async def create_checkout_session(
    request: Request,
    body: CheckoutRequest,
    current_user: CurrentUser,
    db: DbSession,
    gateway: Stripe,
):
    """Open a hosted checkout for a point pack and return its URL."""
    return await PaymentService(db, gateway).create_checkout(current_user, body.points)


@router.post("/update-credits", response_model=ConfirmResponse)
async def update_credits(
    body: ConfirmRequest,
    current_user: CurrentUser,
    db: DbSession,
    gateway: Stripe,
):
    """Credit the account after returning from checkout (idempotent per session)."""
    return await PaymentService(db, gateway).confirm_by_client(current_user, body.session_id)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: DbSession,
    gateway: Stripe,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
):
    """Receive signed Stripe events."""
    payload = await request.body()
    return await PaymentService(db, gateway).handle_webhook(payload, stripe_signature)


@router.get("/history", response_model=PaymentHistoryResponse)
async def get_payment_history(current_user: CurrentUser, db: DbSession, gateway: Stripe):
    """List the current user's checkout sessions."""
    return await PaymentService(db, gateway).history(current_user)
