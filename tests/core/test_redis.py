"""
Unit tests for the optional Redis client.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from flight_connect.core import redis as redis_module

REDIS = "flight_connect.core.redis"


@pytest.fixture(autouse=True)
def no_client():
    redis_module.redis_client = None
    yield
    redis_module.redis_client = None


class TestInitRedis:
    @pytest.mark.asyncio
    async def test_client_published_after_ping(self):
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)

        with patch(f"{REDIS}.from_url", return_value=client):
            await redis_module.init_redis()

        assert await redis_module.get_redis() is client

    @pytest.mark.asyncio
    async def test_failed_ping_leaves_no_client(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))

        with patch(f"{REDIS}.from_url", return_value=client):
            with pytest.raises(RedisConnectionError):
                await redis_module.init_redis()

        assert await redis_module.get_redis() is None


class TestPingRedis:
    @pytest.mark.asyncio
    async def test_no_client(self):
        assert await redis_module.ping_redis() is False

    @pytest.mark.asyncio
    async def test_lost_connection(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("gone"))
        redis_module.redis_client = client

        assert await redis_module.ping_redis() is False
