"""
Unit tests for the sliding-window rate limiter.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from admissions.core.rate_limit import RateLimitExceeded, check_rate_limit

RATE_LIMIT = "admissions.core.rate_limit"


class TestMemoryFallback:
    @pytest.mark.asyncio
    async def test_limit_enforced_per_key(self):
        with patch(f"{RATE_LIMIT}.get_redis", return_value=None):
            assert await check_rate_limit("upload:a", 2, 60)
            assert await check_rate_limit("upload:a", 2, 60)
            assert not await check_rate_limit("upload:a", 2, 60)
            assert await check_rate_limit("upload:b", 2, 60)

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self, mock_redis):
        mock_redis.pipeline.return_value.execute.side_effect = RedisConnectionError("down")

        with patch(f"{RATE_LIMIT}.get_redis", return_value=mock_redis):
            assert await check_rate_limit("upload:c", 1, 60)
            assert not await check_rate_limit("upload:c", 1, 60)


class TestRedis:
    @pytest.mark.asyncio
    async def test_allowed_below_limit(self, mock_redis):
        mock_redis.pipeline.return_value.execute.return_value = [0, 4, 1, True]

        with patch(f"{RATE_LIMIT}.get_redis", return_value=mock_redis):
            assert await check_rate_limit("upload:d", 5, 60)

    @pytest.mark.asyncio
    async def test_rejected_at_limit(self, mock_redis):
        mock_redis.pipeline.return_value.execute.return_value = [0, 5, 1, True]

        with patch(f"{RATE_LIMIT}.get_redis", return_value=mock_redis):
            assert not await check_rate_limit("upload:d", 5, 60)


@pytest.fixture
def mock_redis():
    """Create a mock Redis client with a pipeline."""
    redis = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock()
    redis.pipeline.return_value = pipe
    return redis


def test_rate_limit_exceeded_response():
    exc = RateLimitExceeded(10, 60)

    assert exc.status_code == 429
    assert exc.headers == {"Retry-After": "60"}
    assert exc.detail["error"] == "RATE_LIMIT_EXCEEDED"
