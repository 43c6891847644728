"""Staff API: workshop staff records and geofenced attendance."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_staff, get_current_workshop
from garagehub.database import get_db
from garagehub.models.workshop import Workshop, WorkshopStaff
from garagehub.repositories.staff import StaffRepository
from garagehub.schemas.workshop import (
    AttendanceResponse,
    ClockInRequest,
    StaffCreate,
    StaffResponse,
    StaffUpdate,
)

router = APIRouter(prefix="/api/v1/staff", tags=["staff"])


# Staff member self-service


@router.get("/me", response_model=StaffResponse)
async def my_profile(staff: WorkshopStaff = Depends(get_current_staff)) -> StaffResponse:
    return StaffResponse.model_validate(staff)


@router.post("/me/clock-in", response_model=AttendanceResponse, status_code=201)
async def clock_in(
    data: ClockInRequest,
    staff: WorkshopStaff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
) -> AttendanceResponse:
    """Clock in from the device's reported position.

    Rejected with 400 when outside the workshop geofence.
    """
    record, distance_m = await StaffRepository(db).clock_in(
        staff, data.latitude, data.longitude, data.verification_method
    )
    await db.commit()
    response = AttendanceResponse.model_validate(record)
    response.distance_m = distance_m
    return response


@router.post("/me/clock-out", response_model=AttendanceResponse)
async def clock_out(
    staff: WorkshopStaff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
) -> AttendanceResponse:
    record = await StaffRepository(db).clock_out(staff)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@router.get("/me/attendance", response_model=list[AttendanceResponse])
async def my_attendance(
    staff: WorkshopStaff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
) -> list[AttendanceResponse]:
    records = await StaffRepository(db).attendance(staff.workshop_id, staff_id=staff.id)
    return [AttendanceResponse.model_validate(r) for r in records]


# Workshop owner


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    include_inactive: bool = Query(False),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[StaffResponse]:
    staff = await StaffRepository(db).list(workshop.id, include_inactive=include_inactive)
    return [StaffResponse.model_validate(s) for s in staff]


@router.post("", response_model=StaffResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> StaffResponse:
    staff = await StaffRepository(db).create(workshop, data)
    await db.commit()
    return StaffResponse.model_validate(staff)


@router.get("/attendance", response_model=list[AttendanceResponse])
async def workshop_attendance(
    staff_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[AttendanceResponse]:
    records = await StaffRepository(db).attendance(workshop.id, staff_id=staff_id, limit=limit)
    return [AttendanceResponse.model_validate(r) for r in records]


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> StaffResponse:
    staff = await StaffRepository(db).get_for_workshop(staff_id, workshop)
    return StaffResponse.model_validate(staff)


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: uuid.UUID,
    data: StaffUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> StaffResponse:
    repo = StaffRepository(db)
    staff = await repo.update(await repo.get_for_workshop(staff_id, workshop), data)
    await db.commit()
    return StaffResponse.model_validate(staff)


@router.delete("/{staff_id}", response_model=StaffResponse)
async def deactivate_staff(
    staff_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> StaffResponse:
    """Staff are deactivated rather than deleted so attendance history stays."""
    repo = StaffRepository(db)
    staff = await repo.deactivate(await repo.get_for_workshop(staff_id, workshop))
    await db.commit()
    return StaffResponse.model_validate(staff)
