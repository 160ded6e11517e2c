"""Shared provider failure handling."""
import logging

import httpx

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A provider call failed.

    `kind` is one of "auth", "rate_limit" or "other".
    """

    def __init__(self, provider: str, kind: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.kind = kind
        self.status_code = status_code
        super().__init__(f"{provider} {kind} error: {message}")


def classify_status(status_code: int) -> str:
    if status_code in (401, 403):
        return "auth"
    if status_code == 429:
        return "rate_limit"
    return "other"


def provider_error_from(provider: str, exc: httpx.HTTPError) -> ProviderError:
    """Translate an httpx failure into a typed ProviderError."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        body = exc.response.text[:500]
        logger.warning("%s returned HTTP %s: %s", provider, status_code, body)
        return ProviderError(provider, classify_status(status_code), body or str(exc), status_code)

    logger.warning("%s request failed: %s", provider, exc)
    return ProviderError(provider, "other", str(exc) or exc.__class__.__name__)
