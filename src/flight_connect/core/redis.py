"""
Redis Client

Optional backend for the rate limiter. The API keeps serving without it:
rate limiting then counts in process memory and /ready reports Redis as
unavailable.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from flight_connect.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to ``settings.redis_url`` and verify the connection.

    The client is only published once the ping succeeds, so a failed
    startup leaves ``get_redis()`` returning None.

    Raises:
        RedisError: If the server cannot be reached
    """
    global redis_client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()
    redis_client = client
    logger.info("Redis connection established")
    return client


async def get_redis() -> Redis | None:
    return redis_client


async def ping_redis() -> bool:
    """True when a client is configured and answers a PING."""
    if redis_client is None:
        return False
    try:
        return bool(await redis_client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    """Close the client on shutdown."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")
