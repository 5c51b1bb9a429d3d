"""Lazily created Redis client shared by the event publisher.

Redis only carries realtime notifications. Balances, locks and bracket state
live in PostgreSQL, so a Redis outage degrades to missing events and nothing
else. The short socket timeout keeps a dead broker from stalling a request
that has already committed.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger("es.redis")

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
        )
        logger.debug("Redis client created for %s", settings.REDIS_URL)
    return _client


async def close_redis() -> None:
    """Release the pool; safe to call when no client was ever created."""
    global _client  # noqa: PLW0603
    if _client is None:
        return
    await _client.aclose()
    _client = None
