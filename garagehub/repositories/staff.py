"""Workshop staff and geofenced attendance."""

from __future__ import annotations

import uuid
from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.config import settings
from garagehub.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from garagehub.marketplace.geo import haversine_km
from garagehub.models.base import ensure_utc, utcnow
from garagehub.models.user import User
from garagehub.models.workshop import StaffAttendance, Workshop, WorkshopStaff
from garagehub.schemas.workshop import StaffCreate, StaffUpdate

logger = structlog.get_logger()


class StaffRepository:
    """Staff records and their daily clock-in/clock-out."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, workshop_id: uuid.UUID, include_inactive: bool = False) -> list[WorkshopStaff]:
        stmt = select(WorkshopStaff).where(WorkshopStaff.workshop_id == workshop_id)
        if not include_inactive:
            stmt = stmt.where(WorkshopStaff.is_active == True)  # noqa: E712
        stmt = stmt.order_by(WorkshopStaff.name)
        return list((await self.db.execute(stmt)).scalars().all())

    async def get_for_workshop(self, staff_id: uuid.UUID, workshop: Workshop) -> WorkshopStaff:
        staff = await self.db.get(WorkshopStaff, staff_id)
        if staff is None:
            raise NotFoundError("Staff member", staff_id)
        if staff.workshop_id != workshop.id:
            raise PermissionDeniedError("This staff member works at another workshop")
        return staff

    async def create(self, workshop: Workshop, data: StaffCreate) -> WorkshopStaff:
        if data.user_id is not None:
            user = await self.db.get(User, data.user_id)
            if user is None or user.role != "staff":
                raise ValidationFailedError("Linked user must be an existing staff account")
        staff = WorkshopStaff(workshop_id=workshop.id, is_active=True, **data.model_dump())
        self.db.add(staff)
        await self.db.flush()
        logger.info("staff_created", staff_id=str(staff.id), workshop_id=str(workshop.id))
        return staff

    async def update(self, staff: WorkshopStaff, data: StaffUpdate) -> WorkshopStaff:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(staff, field, value)
        await self.db.flush()
        return staff

    async def deactivate(self, staff: WorkshopStaff) -> WorkshopStaff:
        staff.is_active = False
        await self.db.flush()
        logger.info("staff_deactivated", staff_id=str(staff.id))
        return staff

    # Attendance

    async def today_record(self, staff: WorkshopStaff, now: Optional[datetime] = None) -> Optional[StaffAttendance]:
        local_date = _local_now(now).date()
        result = await self.db.execute(
            select(StaffAttendance).where(
                StaffAttendance.staff_id == staff.id,
                StaffAttendance.attendance_date == local_date,
            )
        )
        return result.scalar_one_or_none()

    async def clock_in(
        self,
        staff: WorkshopStaff,
        latitude: Decimal,
        longitude: Decimal,
        verification_method: str = "gps",
        now: Optional[datetime] = None,
    ) -> tuple[StaffAttendance, float]:
        """Clock in if the device is inside the workshop geofence.

        Returns:
            (attendance record, distance from the workshop in metres)
        """
        workshop = await self.db.get(Workshop, staff.workshop_id)
        if workshop.latitude is None or workshop.longitude is None:
            raise ValidationFailedError("Workshop location is not set")

        distance_m = round(
            haversine_km(
                float(latitude), float(longitude), float(workshop.latitude), float(workshop.longitude)
            )
            * 1000,
            1,
        )
        if distance_m > workshop.geofence_radius:
            logger.warning(
                "clock_in_outside_geofence",
                staff_id=str(staff.id),
                distance_m=distance_m,
                radius_m=workshop.geofence_radius,
            )
            raise ValidationFailedError(
                f"You are {distance_m:.0f} m away, outside geofence radius of {workshop.geofence_radius} m"
            )

        if await self.today_record(staff, now) is not None:
            raise ConflictError("Already clocked in today")

        clock_in_at = now or utcnow()
        local = _local_now(clock_in_at)
        record = StaffAttendance(
            staff_id=staff.id,
            attendance_date=local.date(),
            clock_in=clock_in_at,
            status="late" if local.time() > time(settings.workday_start_hour) else "present",
            latitude=latitude,
            longitude=longitude,
            verification_method=verification_method,
        )
        self.db.add(record)
        await self.db.flush()

        logger.info(
            "staff_clocked_in",
            staff_id=str(staff.id),
            status=record.status,
            distance_m=distance_m,
        )
        return record, distance_m

    async def clock_out(self, staff: WorkshopStaff, now: Optional[datetime] = None) -> StaffAttendance:
        record = await self.today_record(staff, now)
        if record is None or record.clock_in is None:
            raise ValidationFailedError("Not clocked in today")
        if record.clock_out is not None:
            raise ConflictError("Already clocked out today")

        clock_out_at = now or utcnow()
        worked = (clock_out_at - ensure_utc(record.clock_in)).total_seconds() / 3600
        record.clock_out = clock_out_at
        record.hours_worked = Decimal(str(max(worked, 0))).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        await self.db.flush()

        logger.info("staff_clocked_out", staff_id=str(staff.id), hours=str(record.hours_worked))
        return record

    async def attendance(
        self, workshop_id: uuid.UUID, staff_id: Optional[uuid.UUID] = None, limit: int = 100
    ) -> list[StaffAttendance]:
        stmt = (
            select(StaffAttendance)
            .join(WorkshopStaff, WorkshopStaff.id == StaffAttendance.staff_id)
            .where(WorkshopStaff.workshop_id == workshop_id)
        )
        if staff_id is not None:
            stmt = stmt.where(StaffAttendance.staff_id == staff_id)
        stmt = stmt.order_by(StaffAttendance.attendance_date.desc()).limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())


def _local_now(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()).astimezone(ZoneInfo(settings.timezone))
