"""FastAPI dependencies for authentication and role checks."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.sessions import get_session
from garagehub.config import settings
from garagehub.database import get_db
from garagehub.errors import AuthenticationError, NotFoundError, PermissionDeniedError
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop, WorkshopStaff
from garagehub.redis_client import get_redis

logger = structlog.get_logger()


def extract_token(request: Request) -> Optional[str]:
    """Session token from the Authorization header or the session cookie."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name)


async def load_session_user(db: AsyncSession, redis: Redis, token: Optional[str]) -> Optional[User]:
    """Resolve a session token to an active user, or None."""
    session = await get_session(redis, token or "")
    if not session:
        return None

    result = await db.execute(
        select(User).where(User.id == _as_uuid(session.get("user_id")), User.is_active == True)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> User:
    """Get the authenticated user or fail with 401."""
    user = await load_session_user(db, redis, extract_token(request))
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user


def require_roles(*roles: str):
    """Dependency factory that only lets the given roles through."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning("role_denied", user_id=str(user.id), role=user.role, allowed=roles)
            raise PermissionDeniedError(f"Requires role: {', '.join(roles)}")
        return user

    return _check


async def get_current_workshop(
    user: User = Depends(require_roles("workshop")),
    db: AsyncSession = Depends(get_db),
) -> Workshop:
    result = await db.execute(select(Workshop).where(Workshop.user_id == user.id))
    workshop = result.scalar_one_or_none()
    if workshop is None:
        raise NotFoundError("Workshop profile")
    return workshop


async def get_current_supplier(
    user: User = Depends(require_roles("supplier")),
    db: AsyncSession = Depends(get_db),
) -> Supplier:
    result = await db.execute(select(Supplier).where(Supplier.user_id == user.id))
    supplier = result.scalar_one_or_none()
    if supplier is None:
        raise NotFoundError("Supplier profile")
    return supplier


async def get_current_staff(
    user: User = Depends(require_roles("staff")),
    db: AsyncSession = Depends(get_db),
) -> WorkshopStaff:
    result = await db.execute(
        select(WorkshopStaff).where(
            WorkshopStaff.user_id == user.id,
            WorkshopStaff.is_active == True,  # noqa: E712
        )
    )
    staff = result.scalar_one_or_none()
    if staff is None:
        raise NotFoundError("Staff profile")
    return staff


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None
