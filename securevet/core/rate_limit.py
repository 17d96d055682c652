"""
Request throttling.

Every route shares one budget per client address (``RATE_LIMIT_DEFAULT``).
The credential endpoints (login, register, forgot-password) add their own
tighter budget with ``@limiter.limit(settings.AUTH_RATE_LIMIT)``. Counters
live in ``RATE_LIMIT_STORAGE_URI``; use a shared store such as redis when
running more than one worker.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from securevet.core.config import settings

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # sync on purpose: SlowAPIMiddleware calls the handler without awaiting it
    logger.warning(
        "Rate limit hit by %s on %s %s (%s)",
        get_remote_address(request),
        request.method,
        request.url.path,
        exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, please try again later.", "code": "rate_limited"},
    )
