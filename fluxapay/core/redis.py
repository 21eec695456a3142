"""Redis connection management for the payment monitor."""

import redis.asyncio as redis

from fluxapay.core.config import get_settings


def create_redis(url: str | None = None) -> redis.Redis:
    """Create a Redis client.

    The caller owns the client and must close it with ``aclose()``.

    Args:
        url: Redis URL, defaults to ``settings.redis_url``

    Returns:
        Redis client instance
    """
    return redis.from_url(
        url or get_settings().redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
