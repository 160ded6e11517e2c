"""Transactional email (development outbox that writes messages to the log)."""
import logging

from vig.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class EmailService:
    """Composes account emails; delivery is a log record until a mail provider is wired in."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email to=%s subject=%r", to, subject)
        # Bodies can carry live reset tokens.
        logger.debug("Email body for %s:\n%s", to, body)

    async def send_welcome_email(self, email: str, name: str) -> None:
        await self.send(
            email,
            f"Welcome to {settings.app_name}",
            f"Welcome {name}! Thank you for joining us. "
            f"You have {settings.signup_bonus_points} free credits to get started.",
        )

    async def send_password_reset_email(self, email: str, token: str) -> None:
        reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password?token={token}"
        await self.send(
            email,
            "Password Reset Request",
            "You requested a password reset for your account.\n"
            f"Reset link: {reset_url}\n"
            f"This link will expire in {settings.password_reset_expire_minutes} minutes.\n"
            "If you didn't request this, please ignore this email.",
        )


email_service = EmailService()
