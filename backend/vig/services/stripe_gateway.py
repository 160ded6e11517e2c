"""Thin async wrapper around the Stripe Checkout and webhook APIs."""
import asyncio
from typing import Any

import stripe

from vig.config import get_settings

settings = get_settings()


class StripeGateway:
    """Stripe calls used by the payment flow; blocking SDK calls run in a thread."""

    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None):
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    async def create_checkout_session(self, idempotency_key: str | None = None, **params: Any) -> stripe.checkout.Session:
        return await asyncio.to_thread(
            stripe.checkout.Session.create,
            api_key=self.secret_key,
            idempotency_key=idempotency_key,
            **params,
        )

    async def retrieve_checkout_session(self, session_id: str) -> stripe.checkout.Session:
        return await asyncio.to_thread(
            stripe.checkout.Session.retrieve,
            session_id,
            api_key=self.secret_key,
        )

    def construct_event(self, payload: bytes, sig_header: str) -> stripe.Event:
        """Verify the signature over the raw body and parse the event.

        Raises:
            ValueError: invalid payload
            stripe.SignatureVerificationError: invalid signature
        """
        return stripe.Webhook.construct_event(payload, sig_header, self.webhook_secret)
