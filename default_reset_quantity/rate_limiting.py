"""
Rate Limiting Service.

Provides:
- In-memory rate limiting for development (default)
- Redis-backed rate limiting when REDIS_URL is configured (multi-instance)
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings

logger = logging.getLogger("drq.rate_limiting")


def create_limiter(settings: Settings) -> Limiter:
    """
    Create the rate limiter for one application instance.

    Usage:
        limiter = state.limiter

        @router.get("/endpoint")
        @limiter.limit("10/minute")
        async def endpoint(request: Request):
            ...
    """
    if settings.has_redis:
        limiter = Limiter(key_func=get_remote_address, storage_uri=settings.redis_url)
        logger.info("Rate limiter initialized with Redis backend")
    else:
        limiter = Limiter(key_func=get_remote_address)
        logger.info("In-memory rate limiter initialized")

    return limiter
