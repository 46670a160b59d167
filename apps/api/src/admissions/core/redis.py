"""
Shared Redis connection.

One async client per process, opened in the app lifespan. Only the rate
limiter talks to Redis; while no client is connected it counts requests
in process memory instead, so a missing Redis is not fatal outside
production.
"""

import logging

from redis.asyncio import Redis, from_url

from admissions.core.config import settings

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5

_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to ``settings.redis_url`` and keep the client for ``get_redis``.

    The connection is checked with a PING; on failure the client is closed
    again and the error propagates to the lifespan.
    """
    global _client

    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise

    _client = client
    return _client


def get_redis() -> Redis | None:
    """The connected client, or None before ``init_redis`` succeeded."""
    return _client


def is_redis_available() -> bool:
    return _client is not None


async def close_redis() -> None:
    global _client

    if _client is None:
        return
    client, _client = _client, None
    await client.aclose()
    logger.debug("Redis client closed")
