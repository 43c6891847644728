"""Shared Redis connection backing login sessions."""

from typing import Optional

import redis.asyncio as redis

from garagehub.config import settings

_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide client, connecting on first use."""
    global _client
    if _client is None:
        _client = redis.from_url(settings.redis_url, decode_responses=True)
    return _client


async def get_redis() -> redis.Redis:
    """FastAPI dependency for HTTP routes and the WebSocket endpoint."""
    return get_redis_client()


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
