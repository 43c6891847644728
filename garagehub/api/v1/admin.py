"""Admin API: account approval and platform overview (admin role)."""

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import require_roles
from garagehub.database import get_db
from garagehub.marketplace.geo import to_cents
from garagehub.models.order import SupplierOrder
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.wallet import PlatformEscrow
from garagehub.models.workshop import Workshop
from garagehub.repositories.user import UserRepository
from garagehub.schemas.auth import UserResponse
from garagehub.schemas.marketplace import SupplierResponse, WorkshopResponse
from garagehub.wallet.ledger import WalletService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

admin_only = require_roles("admin")


@router.get("/users/pending", response_model=list[UserResponse])
async def pending_users(
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    users = await UserRepository(db).list_pending_approval()
    return [UserResponse.model_validate(u) for u in users]


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    role: Optional[str] = Query(None),
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    if role:
        users = await UserRepository(db).list_by_role(role)
    else:
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        users = list(result.scalars().all())
    return [UserResponse.model_validate(u) for u in users]


@router.post("/users/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Approve a business account; its workshop/supplier profile becomes verified."""
    user = await UserRepository(db).set_approved(user_id, True)
    await db.commit()
    logger.info("admin_user_approved", user_id=str(user.id), admin_id=str(admin.id))
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/revoke", response_model=UserResponse)
async def revoke_approval(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await UserRepository(db).set_approved(user_id, False)
    await db.commit()
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await UserRepository(db).set_active(user_id, False)
    await db.commit()
    logger.info("admin_user_deactivated", user_id=str(user.id), admin_id=str(admin.id))
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/activate", response_model=UserResponse)
async def activate_user(
    user_id: uuid.UUID,
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await UserRepository(db).set_active(user_id, True)
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("/workshops", response_model=list[WorkshopResponse])
async def list_workshops(
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> list[WorkshopResponse]:
    result = await db.execute(select(Workshop).order_by(Workshop.created_at.desc()))
    return [WorkshopResponse.model_validate(w) for w in result.scalars().all()]


@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> list[SupplierResponse]:
    result = await db.execute(select(Supplier).order_by(Supplier.created_at.desc()))
    return [SupplierResponse.model_validate(s) for s in result.scalars().all()]


@router.get("/runners", response_model=list[UserResponse])
async def list_runners(
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    users = await UserRepository(db).list_by_role("runner")
    return [UserResponse.model_validate(u) for u in users]


@router.get("/revenue")
async def revenue_summary(
    admin: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Platform fees earned on delivered orders plus money still in escrow.

    Returns:
        {"platform_revenue": str, "held_in_escrow": str, "orders_by_status": {...}}
    """
    held = (
        await db.execute(
            select(func.coalesce(func.sum(PlatformEscrow.total_amount), 0)).where(
                PlatformEscrow.status == "holding"
            )
        )
    ).scalar_one()
    by_status = (
        await db.execute(
            select(SupplierOrder.status, func.count()).group_by(SupplierOrder.status)
        )
    ).all()

    return {
        "platform_revenue": str(await WalletService(db).platform_revenue()),
        "held_in_escrow": str(to_cents(held)),
        "orders_by_status": {status: count for status, count in by_status},
    }
