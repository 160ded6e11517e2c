"""Shared API dependencies."""
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vig.database import get_db
from vig.errors import AuthenticationError, Forbidden
from vig.models.user import User
from vig.services.media import SubtitleBurner
from vig.services.providers import DeepgramClient, ElevenLabsClient
from vig.services.stripe_gateway import StripeGateway
from vig.utils.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """Resolve the bearer access token to an active user."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active == True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("User not found or inactive")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_admin_user(current_user: CurrentUser) -> User:
    if not current_user.is_admin:
        raise Forbidden("Admin access required")
    return current_user


AdminUser = Annotated[User, Depends(get_admin_user)]


# Provider clients are dependencies so they can be swapped out in tests.
def get_elevenlabs_client() -> ElevenLabsClient:
    return ElevenLabsClient()


def get_deepgram_client() -> DeepgramClient:
    return DeepgramClient()


def get_subtitle_burner() -> SubtitleBurner:
    return SubtitleBurner()


def get_stripe_gateway() -> StripeGateway:
    return StripeGateway()


ElevenLabs = Annotated[ElevenLabsClient, Depends(get_elevenlabs_client)]
Deepgram = Annotated[DeepgramClient, Depends(get_deepgram_client)]
Burner = Annotated[SubtitleBurner, Depends(get_subtitle_burner)]
Stripe = Annotated[StripeGateway, Depends(get_stripe_gateway)]
