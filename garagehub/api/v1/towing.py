"""Towing API: customer requests and operator dispatch."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_user, require_roles
from garagehub.database import get_db
from garagehub.models.user import User
from garagehub.repositories.towing import TowingRepository
from garagehub.schemas.service import (
    TowingAssign,
    TowingCreate,
    TowingResponse,
    TowingStatusUpdate,
)

router = APIRouter(prefix="/api/v1/towing", tags=["towing"])


@router.post("", response_model=TowingResponse, status_code=201)
async def request_tow(
    data: TowingCreate,
    customer: User = Depends(require_roles("customer")),
    db: AsyncSession = Depends(get_db),
) -> TowingResponse:
    request = await TowingRepository(db).create(customer, data)
    await db.commit()
    return TowingResponse.model_validate(request)


@router.get("", response_model=list[TowingResponse])
async def list_requests(
    user: User = Depends(require_roles("customer", "towing")),
    db: AsyncSession = Depends(get_db),
) -> list[TowingResponse]:
    """Customers see their own requests; operators see open ones plus their jobs."""
    repo = TowingRepository(db)
    if user.role == "towing":
        requests = await repo.list_for_operator(user.id)
    else:
        requests = await repo.list_for_customer(user.id)
    return [TowingResponse.model_validate(r) for r in requests]


@router.get("/{request_id}", response_model=TowingResponse)
async def get_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TowingResponse:
    request = await TowingRepository(db).get_visible(request_id, user)
    return TowingResponse.model_validate(request)


@router.post("/{request_id}/assign", response_model=TowingResponse)
async def assign_request(
    request_id: uuid.UUID,
    data: TowingAssign,
    operator: User = Depends(require_roles("towing")),
    db: AsyncSession = Depends(get_db),
) -> TowingResponse:
    repo = TowingRepository(db)
    request = await repo.assign(await repo.get(request_id), operator, data.estimated_cost)
    await db.commit()
    return TowingResponse.model_validate(request)


@router.patch("/{request_id}/status", response_model=TowingResponse)
async def update_request_status(
    request_id: uuid.UUID,
    data: TowingStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TowingResponse:
    repo = TowingRepository(db)
    request = await repo.update_status(await repo.get(request_id), data.status, user)
    await db.commit()
    return TowingResponse.model_validate(request)
