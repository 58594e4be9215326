"""
Rate limiting configuration for Pagecast
"""

from fastapi import Request
from fastapi.responses import PlainTextResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import logging

from pagecast.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."


def get_real_ip(request: Request) -> str:
    """
    Get the real IP address, considering proxy headers.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


def create_limiter(enabled: bool = None) -> Limiter:
    """Limiter keyed by client IP; disabled unless PAGECAST_RATE_LIMIT_ENABLED is set"""
    if enabled is None:
        enabled = settings.RATE_LIMIT_ENABLED
    return Limiter(key_func=get_real_ip, enabled=enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Plain text 429 with retry hint"""
    logger.warning(f"Rate limit exceeded by {get_real_ip(request)} on {request.url.path}")
    response = PlainTextResponse(content=RATE_LIMIT_MESSAGE, status_code=429)
    response.headers["Retry-After"] = "60"
    response.headers["X-RateLimit-Limit"] = str(getattr(exc, "limit", "N/A"))
    return response

