"""Authentication and account service."""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import Conflict, ValidationError
from vig.models.credit_transaction import CreditReason, CreditTransaction
from vig.models.user import User
from vig.schemas.user import ProfileUpdate, Token, UserRegister
from vig.services.credit_service import CreditService
from vig.services.email_service import EmailService, email_service
from vig.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)

settings = get_settings()
logger = logging.getLogger(__name__)


def split_name(name: str) -> tuple[str, str | None]:
    parts = name.strip().split(maxsplit=1)
    first = parts[0] if parts else name.strip()
    last = parts[1] if len(parts) > 1 else None
    return first, last


class AuthService:
    """Service for user authentication operations."""

    def __init__(self, db: AsyncSession, mailer: EmailService | None = None):
        self.db = db
        self.mailer = mailer or email_service
        self.credits = CreditService(db)

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(self, user_data: UserRegister) -> User:
        """Register a new user seeded with the signup bonus."""
        email = user_data.email.lower()
        if await self.get_user_by_email(email):
            raise Conflict("User already exists")

        first_name, last_name = split_name(user_data.name)
        user = User(
            email=email,
            username=email.split("@")[0],
            first_name=first_name,
            last_name=last_name,
            hashed_password=get_password_hash(user_data.password),
            points=settings.signup_bonus_points,
            has_received_free_credits=True,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            raise Conflict("User already exists")
        await self.db.refresh(user)

        self.db.add(
            CreditTransaction(
                user_id=user.id,
                amount=settings.signup_bonus_points,
                reason=CreditReason.SIGNUP_BONUS,
            )
        )
        await self.db.flush()

        try:
            await self.mailer.send_welcome_email(user.email, user.full_name)
        except Exception:
            logger.exception("Failed to send welcome email to user %s", user.id)

        return user

    async def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate user with email and password."""
        user = await self.get_user_by_email(email)

        if user is None:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        if not user.is_active:
            return None

        return user

    async def grant_login_bonus(self, user: User) -> bool:
        """Give accounts created before free credits existed their one-time grant."""
        if user.has_received_free_credits:
            return False
        new_balance = await self.credits.grant_free_credits(user.id)
        if new_balance is None:
            return False
        await self.db.refresh(user)
        return True

    def create_tokens(self, user: User) -> Token:
        """Create access and refresh tokens for user."""
        return Token(
            access_token=create_access_token(user.id),
            refresh_token=create_refresh_token(user.id),
        )

    async def refresh_tokens(self, refresh_token: str) -> Token | None:
        """Refresh access token using refresh token."""
        payload = decode_token(refresh_token)
        if payload is None:
            return None

        if payload.get("type") != "refresh":
            return None

        user_id = payload.get("sub")
        if user_id is None:
            return None

        try:
            user_id = int(user_id)
        except ValueError:
            return None

        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_active == True)
        )
        user = result.scalar_one_or_none()

        if user is None:
            return None

        return self.create_tokens(user)

    async def update_profile(self, user: User, update_data: ProfileUpdate) -> User:
        """Apply profile fields; a new email must not belong to another account."""
        if update_data.email is not None:
            email = update_data.email.lower()
            if email != user.email:
                existing = await self.get_user_by_email(email)
                if existing is not None and existing.id != user.id:
                    raise Conflict("Email is already in use")
                user.email = email

        if update_data.first_name is not None:
            user.first_name = update_data.first_name
        if update_data.last_name is not None:
            user.last_name = update_data.last_name

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token when the account exists; silent otherwise."""
        user = await self.get_user_by_email(email)
        if user is None:
            return

        token, token_hash = generate_reset_token()
        user.reset_token_hash = token_hash
        user.reset_token_expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.password_reset_expire_minutes
        )
        await self.db.flush()

        try:
            await self.mailer.send_password_reset_email(user.email, token)
        except Exception:
            logger.exception("Failed to send password reset email to user %s", user.id)

    async def reset_password(self, token: str, password: str) -> None:
        result = await self.db.execute(
            select(User).where(
                User.reset_token_hash == hash_reset_token(token),
                User.reset_token_expires_at > datetime.now(timezone.utc),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise ValidationError("Invalid or expired reset token")

        user.hashed_password = get_password_hash(password)
        user.reset_token_hash = None
        user.reset_token_expires_at = None
        await self.db.flush()
