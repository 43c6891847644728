"""Auth API: registration, login and sessions."""

import structlog
from fastapi import APIRouter, Depends, Request, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import extract_token, get_current_user
from garagehub.auth.rate_limit import client_ip, login_limiter
from garagehub.auth.sessions import create_session, delete_session
from garagehub.config import settings
from garagehub.database import get_db
from garagehub.errors import AuthenticationError
from garagehub.models.user import User
from garagehub.redis_client import get_redis
from garagehub.repositories.user import UserRepository
from garagehub.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Create an account.

    Customers can log in right away; business roles wait for admin approval.
    """
    user = await UserRepository(db).register(data)
    await db.commit()
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> LoginResponse:
    """Exchange credentials for a session token.

    The token is returned in the body and also set as an httpOnly cookie.
    """
    ip = client_ip(request)
    login_limiter.check(ip)

    try:
        user = await UserRepository(db).authenticate(data.email, data.password)
    except AuthenticationError:
        login_limiter.record_failure(ip)
        logger.warning("login_failed", email=data.email, ip=ip)
        raise

    login_limiter.reset(ip)
    token = await create_session(redis, str(user.id), user.role)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.session_ttl_seconds,
    )

    logger.info("login_success", user_id=str(user.id), role=user.role)
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    redis: Redis = Depends(get_redis),
) -> dict:
    token = extract_token(request)
    if token:
        await delete_session(redis, token)
    response.delete_cookie(settings.session_cookie_name)
    return {"status": "ok"}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await UserRepository(db).change_password(user, data.current_password, data.new_password)
    await db.commit()
    return {"status": "ok"}
