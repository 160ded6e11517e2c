"""Rate limiting utilities using slowapi."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from vig.config import get_settings

settings = get_settings()

# Create limiter instance
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


# Rate limit decorators
def rate_limit_default():
    """Default rate limit decorator."""
    return limiter.limit(f"{settings.rate_limit_per_minute}/minute")


def rate_limit_strict():
    """Strict rate limit for expensive operations (provider calls, media muxing)."""
    return limiter.limit("5/minute")


def rate_limit_auth():
    """Rate limit for authentication endpoints."""
    return limiter.limit("10/minute")
