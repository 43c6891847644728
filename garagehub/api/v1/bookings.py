"""Bookings API: customer appointment requests."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_workshop, require_roles
from garagehub.database import get_db
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.repositories.booking import BookingRepository
from garagehub.schemas.service import (
    BookingApprove,
    BookingCreate,
    BookingProposal,
    BookingResponse,
    JobResponse,
)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])

customer_only = require_roles("customer")


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    customer: User = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    booking = await BookingRepository(db).create(customer, data)
    await db.commit()
    return BookingResponse.model_validate(booking)


@router.get("/mine", response_model=list[BookingResponse])
async def list_my_bookings(
    status: Optional[str] = Query(None),
    customer: User = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
) -> list[BookingResponse]:
    bookings = await BookingRepository(db).list(customer_id=customer.id, status=status)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/workshop", response_model=list[BookingResponse])
async def list_workshop_bookings(
    status: Optional[str] = Query(None),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[BookingResponse]:
    bookings = await BookingRepository(db).list(workshop_id=workshop.id, status=status)
    return [BookingResponse.model_validate(b) for b in bookings]


# Workshop actions


@router.post("/{booking_id}/approve")
async def approve_booking(
    booking_id: uuid.UUID,
    data: BookingApprove,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Approve and open a service job.

    Returns:
        {"booking": {...}, "job": {...}}
    """
    repo = BookingRepository(db)
    booking = await repo.get_for_workshop(booking_id, workshop)
    booking, job = await repo.approve(booking, data.estimated_cost, data.vehicle_plate)
    await db.commit()
    return {
        "booking": BookingResponse.model_validate(booking),
        "job": JobResponse.model_validate(job),
    }


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.reject(await repo.get_for_workshop(booking_id, workshop))
    await db.commit()
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/propose", response_model=BookingResponse)
async def propose_date(
    booking_id: uuid.UUID,
    data: BookingProposal,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.get_for_workshop(booking_id, workshop)
    booking = await repo.propose(booking, data.proposed_date, data.reason)
    await db.commit()
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.complete(await repo.get_for_workshop(booking_id, workshop))
    await db.commit()
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/workshop-cancel", response_model=BookingResponse)
async def workshop_cancel_booking(
    booking_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.cancel(await repo.get_for_workshop(booking_id, workshop), by_customer=False)
    await db.commit()
    return BookingResponse.model_validate(booking)


# Customer actions


@router.post("/{booking_id}/accept-proposal")
async def accept_proposal(
    booking_id: uuid.UUID,
    customer: User = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
) -> dict:
    repo = BookingRepository(db)
    booking, job = await repo.accept_proposal(await repo.get_for_customer(booking_id, customer))
    await db.commit()
    return {
        "booking": BookingResponse.model_validate(booking),
        "job": JobResponse.model_validate(job),
    }


@router.post("/{booking_id}/reject-proposal", response_model=BookingResponse)
async def reject_proposal(
    booking_id: uuid.UUID,
    customer: User = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.reject_proposal(await repo.get_for_customer(booking_id, customer))
    await db.commit()
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: uuid.UUID,
    customer: User = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
) -> BookingResponse:
    repo = BookingRepository(db)
    booking = await repo.cancel(await repo.get_for_customer(booking_id, customer), by_customer=True)
    await db.commit()
    return BookingResponse.model_validate(booking)
