"""Redis-backed login sessions."""

from __future__ import annotations

import json
import secrets
from typing import Optional

import structlog
from redis.asyncio import Redis

from garagehub.config import settings

logger = structlog.get_logger()

SESSION_PREFIX = "session:"


async def create_session(redis: Redis, user_id: str, role: str) -> str:
    """Create a session in Redis.

    Args:
        redis: Redis client
        user_id: UUID of the logged-in user
        role: The user's role at login time

    Returns:
        Session token (random string)
    """
    token = secrets.token_urlsafe(32)
    session_data = json.dumps({"user_id": user_id, "role": role})

    await redis.setex(
        f"{SESSION_PREFIX}{token}",
        settings.session_ttl_seconds,
        session_data,
    )

    logger.info("session_created", user_id=user_id, role=role)

    return token


async def get_session(redis: Redis, token: str) -> Optional[dict]:
    """Get session data from Redis.

    Returns:
        Session dict with user_id and role, or None
    """
    if not token:
        return None

    data = await redis.get(f"{SESSION_PREFIX}{token}")
    if not data:
        return None

    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return None


async def delete_session(redis: Redis, token: str) -> None:
    """Delete a session from Redis."""
    await redis.delete(f"{SESSION_PREFIX}{token}")
