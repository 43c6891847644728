"""Delivery API: runner offers and active deliveries."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import require_roles
from garagehub.database import get_db
from garagehub.dispatch.deliveries import DeliveryService
from garagehub.dispatch.offers import DispatchService
from garagehub.errors import ConflictError
from garagehub.models.user import User
from garagehub.schemas.order import (
    DeliveryOfferResponse,
    DeliveryResponse,
    DeliveryStatusUpdate,
    LocationUpdate,
)

router = APIRouter(prefix="/api/v1", tags=["deliveries"])

runner_only = require_roles("runner")


@router.get("/delivery-offers", response_model=list[DeliveryOfferResponse])
async def list_offers(
    status: Optional[str] = Query(None, description="pending, accepted, rejected or expired"),
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> list[DeliveryOfferResponse]:
    offers = await DispatchService(db).list_for_runner(runner.id, status)
    await db.commit()
    return [DeliveryOfferResponse.model_validate(o) for o in offers]


@router.post("/delivery-offers/{offer_id}/accept", response_model=DeliveryResponse)
async def accept_offer(
    offer_id: uuid.UUID,
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> DeliveryResponse:
    """First runner to accept wins the order; late or expired accepts get 409."""
    service = DispatchService(db)
    try:
        assignment = await service.accept(offer_id, runner)
    except ConflictError:
        # Offers expired during the attempt stay expired
        await db.commit()
        raise
    await db.commit()
    return DeliveryResponse.model_validate(assignment)


@router.post("/delivery-offers/{offer_id}/reject", response_model=DeliveryOfferResponse)
async def reject_offer(
    offer_id: uuid.UUID,
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> DeliveryOfferResponse:
    offer = await DispatchService(db).reject(offer_id, runner)
    await db.commit()
    return DeliveryOfferResponse.model_validate(offer)


@router.get("/deliveries", response_model=list[DeliveryResponse])
async def list_deliveries(
    active: bool = Query(False, description="Only deliveries still in progress"),
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> list[DeliveryResponse]:
    assignments = await DeliveryService(db).list_for_runner(runner.id, active_only=active)
    return [DeliveryResponse.model_validate(a) for a in assignments]


@router.post("/deliveries/{delivery_id}/location", response_model=DeliveryResponse)
async def update_location(
    delivery_id: uuid.UUID,
    data: LocationUpdate,
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> DeliveryResponse:
    service = DeliveryService(db)
    assignment = await service.get_for_runner(delivery_id, runner)
    assignment = await service.update_location(assignment, data.latitude, data.longitude)
    await db.commit()
    return DeliveryResponse.model_validate(assignment)


@router.patch("/deliveries/{delivery_id}/status", response_model=DeliveryResponse)
async def update_delivery_status(
    delivery_id: uuid.UUID,
    data: DeliveryStatusUpdate,
    runner: User = Depends(runner_only),
    db: AsyncSession = Depends(get_db),
) -> DeliveryResponse:
    service = DeliveryService(db)
    assignment = await service.get_for_runner(delivery_id, runner)
    assignment = await service.update_status(assignment, data.status)
    await db.commit()
    return DeliveryResponse.model_validate(assignment)
