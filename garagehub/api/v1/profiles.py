"""Profile API: user details and workshop/supplier business profiles."""

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_supplier, get_current_user, get_current_workshop
from garagehub.database import get_db
from garagehub.errors import NotFoundError
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.schemas.auth import ProfileUpdate, UserResponse
from garagehub.schemas.marketplace import (
    SupplierResponse,
    SupplierUpdate,
    WorkshopResponse,
    WorkshopUpdate,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["profiles"])


@router.patch("/users/me", response_model=UserResponse)
async def update_me(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    logger.info("profile_updated", user_id=str(user.id), fields=sorted(changes))
    return UserResponse.model_validate(user)


@router.get("/workshops/me", response_model=WorkshopResponse)
async def my_workshop(workshop: Workshop = Depends(get_current_workshop)) -> WorkshopResponse:
    return WorkshopResponse.model_validate(workshop)


@router.patch("/workshops/me", response_model=WorkshopResponse)
async def update_my_workshop(
    data: WorkshopUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> WorkshopResponse:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(workshop, field, value)
    await db.commit()
    return WorkshopResponse.model_validate(workshop)


@router.get("/workshops", response_model=list[WorkshopResponse])
async def list_workshops(
    state: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Name or city substring"),
    db: AsyncSession = Depends(get_db),
) -> list[WorkshopResponse]:
    """Workshops customers can book, best rated first."""
    stmt = select(Workshop)
    if state:
        stmt = stmt.where(Workshop.state == state)
    if q:
        pattern = f"%{q.strip()}%"
        stmt = stmt.where(or_(Workshop.name.ilike(pattern), Workshop.city.ilike(pattern)))
    stmt = stmt.order_by(Workshop.rating.desc(), Workshop.name)
    result = await db.execute(stmt)
    return [WorkshopResponse.model_validate(w) for w in result.scalars().all()]


@router.get("/workshops/{workshop_id}", response_model=WorkshopResponse)
async def get_workshop(
    workshop_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> WorkshopResponse:
    workshop = await db.get(Workshop, workshop_id)
    if workshop is None:
        raise NotFoundError("Workshop", workshop_id)
    return WorkshopResponse.model_validate(workshop)


@router.get("/suppliers/me", response_model=SupplierResponse)
async def my_supplier(supplier: Supplier = Depends(get_current_supplier)) -> SupplierResponse:
    return SupplierResponse.model_validate(supplier)


@router.patch("/suppliers/me", response_model=SupplierResponse)
async def update_my_supplier(
    data: SupplierUpdate,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> SupplierResponse:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)
    await db.commit()
    return SupplierResponse.model_validate(supplier)
