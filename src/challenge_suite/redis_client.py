"""Process-wide Redis client for the rate limiter and the readiness check.

The API keeps working without Redis: callers treat ``RuntimeError`` from
``get_redis`` (never initialized) and ``RedisError`` (unreachable) as
"limiter off".
"""

import redis.asyncio as redis

from challenge_suite.config import Settings

_client: redis.Redis | None = None


async def init_redis(settings: Settings) -> None:
    """Build the client from ``redis_url``; connections open lazily."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        settings.redis_url,
        decode_responses=True,
        max_connections=settings.redis_max_connections,
        socket_connect_timeout=settings.redis_timeout_seconds,
        socket_timeout=settings.redis_timeout_seconds,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def ping_redis() -> None:
    """Round-trip to Redis; raises ``RuntimeError`` or ``RedisError`` on failure."""
    await get_redis().ping()
