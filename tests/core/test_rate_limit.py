"""
Unit tests for rate limiting with the in-memory fallback.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from flight_connect.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    rate_limit,
    reset_memory_store,
)

RATE_LIMIT = "flight_connect.core.rate_limit"


@pytest.fixture(autouse=True)
def clean_store():
    reset_memory_store()
    yield
    reset_memory_store()


def request_from(host: str):
    request = MagicMock()
    request.client.host = host
    return request


class TestCheckRateLimit:
    """Tests for check_rate_limit without Redis."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        with patch(f"{RATE_LIMIT}.get_redis", AsyncMock(return_value=None)):
            results = [await check_rate_limit("k", limit=3, window_seconds=60) for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        with patch(f"{RATE_LIMIT}.get_redis", AsyncMock(return_value=None)):
            assert await check_rate_limit("a", limit=1, window_seconds=60)
            assert await check_rate_limit("b", limit=1, window_seconds=60)
            assert not await check_rate_limit("a", limit=1, window_seconds=60)

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_memory(self):
        broken = MagicMock()
        broken.pipeline.side_effect = ConnectionError("redis down")

        with patch(f"{RATE_LIMIT}.get_redis", AsyncMock(return_value=broken)):
            assert await check_rate_limit("k", limit=1, window_seconds=60)
            assert not await check_rate_limit("k", limit=1, window_seconds=60)


class TestRateLimitDependency:
    """Tests for the rate_limit dependency factory."""

    @pytest.mark.asyncio
    async def test_raises_429_when_exceeded(self):
        dependency = rate_limit("valid_keys", limit=2, window_seconds=30)
        request = request_from("10.0.0.1")

        with patch(f"{RATE_LIMIT}.get_redis", AsyncMock(return_value=None)):
            await dependency(request)
            await dependency(request)

            with pytest.raises(RateLimitExceeded) as exc_info:
                await dependency(request)

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "30"
        assert exc_info.value.detail["error"] == "RATE_LIMIT_EXCEEDED"

    @pytest.mark.asyncio
    async def test_limits_are_per_client(self):
        dependency = rate_limit("participants", limit=1, window_seconds=30)

        with patch(f"{RATE_LIMIT}.get_redis", AsyncMock(return_value=None)):
            await dependency(request_from("10.0.0.1"))
            await dependency(request_from("10.0.0.2"))
