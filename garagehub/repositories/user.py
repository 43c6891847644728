"""User repository: registration, login and approvals."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.passwords import hash_password, verify_password
from garagehub.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from garagehub.models.supplier import Supplier
from garagehub.models.user import AUTO_APPROVED_ROLES, User
from garagehub.models.wallet import Wallet
from garagehub.models.workshop import Workshop
from garagehub.schemas.auth import RegisterRequest

logger = structlog.get_logger()

# Roles that can always log in, approved or not
LOGIN_WITHOUT_APPROVAL = ("customer", "admin", "staff")


class UserRepository:
    """Manages user accounts and their business profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def register(self, data: RegisterRequest) -> User:
        """Create a user with a wallet and, for business roles, a profile.

        Args:
            data: Validated registration payload

        Returns:
            The new user (unapproved unless the role is auto-approved)
        """
        email = data.email.strip().lower()
        if await self.get_by_email(email) is not None:
            raise ConflictError("Email is already registered")

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name or "",
            role=data.role,
            phone=data.phone,
            address=data.address,
            state=data.state,
            city=data.city,
            latitude=data.latitude,
            longitude=data.longitude,
            is_active=True,
            is_approved=data.role in AUTO_APPROVED_ROLES,
        )
        self.db.add(user)
        await self.db.flush()

        self.db.add(Wallet(user_id=user.id))

        if data.role == "workshop":
            self.db.add(
                Workshop(
                    user_id=user.id,
                    name=data.business_name,
                    address=data.address,
                    phone=data.phone,
                    state=data.state,
                    city=data.city,
                    latitude=data.latitude,
                    longitude=data.longitude,
                )
            )
        elif data.role == "supplier":
            self.db.add(
                Supplier(
                    user_id=user.id,
                    name=data.business_name,
                    address=data.address,
                    phone=data.phone,
                    state=data.state,
                    city=data.city,
                    latitude=data.latitude,
                    longitude=data.longitude,
                    supplier_type=data.supplier_type,
                    delivery_method=data.delivery_method,
                )
            )
        await self.db.flush()

        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and account state.

        Raises:
            AuthenticationError: unknown email or wrong password
            PermissionDeniedError: deactivated or still awaiting approval
        """
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise PermissionDeniedError("Account is deactivated")
        if not user.is_approved and user.role not in LOGIN_WITHOUT_APPROVAL:
            raise PermissionDeniedError("Account is awaiting admin approval")
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        await self.db.flush()
        logger.info("password_changed", user_id=str(user.id))

    async def list_pending_approval(self) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.is_approved == False, User.is_active == True)  # noqa: E712
            .order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def list_by_role(self, role: str) -> list[User]:
        result = await self.db.execute(
            select(User).where(User.role == role).order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def set_approved(self, user_id: uuid.UUID, approved: bool) -> User:
        user = await self.get(user_id)
        user.is_approved = approved
        await self._set_verified(user, approved)
        await self.db.flush()
        logger.info("user_approval_changed", user_id=str(user.id), approved=approved)
        return user

    async def set_active(self, user_id: uuid.UUID, active: bool) -> User:
        user = await self.get(user_id)
        user.is_active = active
        await self.db.flush()
        logger.info("user_active_changed", user_id=str(user.id), active=active)
        return user

    async def _set_verified(self, user: User, verified: bool) -> None:
        model = {"workshop": Workshop, "supplier": Supplier}.get(user.role)
        if model is None:
            return
        profile = (
            await self.db.execute(select(model).where(model.user_id == user.id))
        ).scalar_one_or_none()
        if profile is not None:
            profile.is_verified = verified
