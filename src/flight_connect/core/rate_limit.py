"""
Rate Limiting Module

Sliding-window rate limiting for write endpoints that hand out codes
(participant registration, validation key issuance). Redis is the
backend when available; otherwise counts are kept in process memory,
which only limits a single server instance.
"""

import logging
import time

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from flight_connect.core.config import settings
from flight_connect.core.redis import get_redis

logger = logging.getLogger(__name__)

# Fallback storage: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": (
                    f"Rate limit exceeded. Maximum {limit} requests "
                    f"per {window_seconds} seconds."
                ),
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using a Redis sorted set per key.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """Check rate limit using in-memory storage."""
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "valid_keys:10.0.0.1")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = await get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def rate_limit(scope: str, limit: int | None = None, window_seconds: int | None = None):
    """
    Build a FastAPI dependency enforcing a per-client rate limit.

    Usage:
        @router.post("", dependencies=[Depends(rate_limit("participants"))])
        async def register(...):
            ...

    Args:
        scope: Name of the limited action, part of the key
        limit: Maximum requests per window (defaults to settings)
        window_seconds: Window length (defaults to settings)

    Raises:
        RateLimitExceeded: When rate limit is exceeded (HTTP 429)
    """
    max_requests = limit or settings.rate_limit_key_requests
    window = window_seconds or settings.rate_limit_window_seconds

    async def dependency(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{scope}:{client_ip}"

        if not await check_rate_limit(key, max_requests, window):
            logger.warning(f"Rate limit exceeded for {key}: {max_requests}/{window}s")
            raise RateLimitExceeded(max_requests, window)

    return dependency


def reset_memory_store() -> None:
    """Clear in-memory counters."""
    _memory_store.clear()


__all__ = [
    "rate_limit",
    "check_rate_limit",
    "reset_memory_store",
    "RateLimitExceeded",
]
