"""Booking repository: customer appointment requests and reschedules."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import InvalidStatusTransitionError, NotFoundError, PermissionDeniedError
from garagehub.models.service import Booking, Job
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_booking_updated, emit_job_update
from garagehub.repositories.workflow import BOOKING_TRANSITIONS, check_transition
from garagehub.schemas.service import BookingCreate

logger = structlog.get_logger()


class BookingRepository:
    """Moves bookings between customer and workshop."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get(self, booking_id: uuid.UUID) -> Booking:
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def get_for_workshop(self, booking_id: uuid.UUID, workshop: Workshop) -> Booking:
        booking = await self.get(booking_id)
        if booking.workshop_id != workshop.id:
            raise PermissionDeniedError("This booking belongs to another workshop")
        return booking

    async def get_for_customer(self, booking_id: uuid.UUID, customer: User) -> Booking:
        booking = await self.get(booking_id)
        if booking.customer_id != customer.id:
            raise PermissionDeniedError("This booking belongs to another customer")
        return booking

    async def list(
        self,
        workshop_id: Optional[uuid.UUID] = None,
        customer_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
    ) -> list[Booking]:
        stmt = select(Booking)
        if workshop_id is not None:
            stmt = stmt.where(Booking.workshop_id == workshop_id)
        if customer_id is not None:
            stmt = stmt.where(Booking.customer_id == customer_id)
        if status:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.preferred_date)
        return list((await self.db.execute(stmt)).scalars().all())

    async def create(self, customer: User, data: BookingCreate) -> Booking:
        workshop = await self.db.get(Workshop, data.workshop_id)
        if workshop is None:
            raise NotFoundError("Workshop", data.workshop_id)

        booking = Booking(customer_id=customer.id, status="pending", **data.model_dump())
        self.db.add(booking)
        await self.db.flush()

        await emit_booking_updated(booking)
        await self.notifications.notify_booking_update(workshop.user_id, booking)
        logger.info("booking_created", booking_id=str(booking.id), workshop_id=str(workshop.id))
        return booking

    async def approve(
        self, booking: Booking, estimated_cost=None, vehicle_plate: Optional[str] = None
    ) -> tuple[Booking, Job]:
        """Workshop approval of a pending request; opens a service job.

        A counter-proposal is settled by the customer via `accept_proposal`.
        """
        if booking.status != "pending":
            raise InvalidStatusTransitionError(booking.status, "approved", "booking")
        return await self._open_job(booking, estimated_cost, vehicle_plate)

    async def _open_job(
        self, booking: Booking, estimated_cost=None, vehicle_plate: Optional[str] = None
    ) -> tuple[Booking, Job]:
        await self._move(booking, "approved")
        if estimated_cost is not None:
            booking.estimated_cost = estimated_cost

        job = Job(
            workshop_id=booking.workshop_id,
            customer_id=booking.customer_id,
            booking_id=booking.id,
            vehicle_model=booking.vehicle,
            vehicle_plate=vehicle_plate,
            service_type=booking.service_type,
            description=booking.description,
            status="pending",
            progress=0,
            estimated_cost=booking.estimated_cost,
            scheduled_date=booking.proposed_date or booking.preferred_date,
        )
        self.db.add(job)
        await self.db.flush()

        await emit_job_update(job)
        await self._announce(booking, booking.customer_id)
        logger.info("booking_approved", booking_id=str(booking.id), job_id=str(job.id))
        return booking, job

    async def reject(self, booking: Booking) -> Booking:
        await self._move(booking, "rejected")
        await self._announce(booking, booking.customer_id)
        return booking

    async def propose(self, booking: Booking, proposed_date, reason: Optional[str]) -> Booking:
        """Workshop suggests a different date; the customer decides."""
        await self._move(booking, "workshop_proposed")
        booking.proposed_date = proposed_date
        booking.proposal_reason = reason
        await self.db.flush()
        await self._announce(booking, booking.customer_id)
        return booking

    async def accept_proposal(self, booking: Booking) -> tuple[Booking, Job]:
        self._require_proposal(booking, "approved")
        booking.preferred_date = booking.proposed_date or booking.preferred_date
        booking, job = await self._open_job(booking)
        await self._notify_workshop(booking)
        return booking, job

    async def reject_proposal(self, booking: Booking) -> Booking:
        self._require_proposal(booking, "cancelled")
        await self._move(booking, "cancelled")
        await self._announce(booking, None)
        await self._notify_workshop(booking)
        return booking

    async def complete(self, booking: Booking) -> Booking:
        await self._move(booking, "completed")
        await self._announce(booking, booking.customer_id)
        return booking

    async def cancel(self, booking: Booking, by_customer: bool) -> Booking:
        await self._move(booking, "cancelled")
        if by_customer:
            await self._announce(booking, None)
            await self._notify_workshop(booking)
        else:
            await self._announce(booking, booking.customer_id)
        return booking

    def _require_proposal(self, booking: Booking, new_status: str) -> None:
        if booking.status != "workshop_proposed":
            raise InvalidStatusTransitionError(booking.status, new_status, "booking without a proposal")

    async def _move(self, booking: Booking, new_status: str) -> None:
        check_transition(BOOKING_TRANSITIONS, booking.status, new_status, "booking")
        previous = booking.status
        booking.status = new_status
        await self.db.flush()
        logger.info(
            "booking_status_updated",
            booking_id=str(booking.id),
            from_status=previous,
            to_status=new_status,
        )

    async def _announce(self, booking: Booking, notify_user_id) -> None:
        await emit_booking_updated(booking)
        if notify_user_id is not None:
            await self.notifications.notify_booking_update(notify_user_id, booking)

    async def _notify_workshop(self, booking: Booking) -> None:
        workshop = await self.db.get(Workshop, booking.workshop_id)
        if workshop is not None:
            await self.notifications.notify_booking_update(workshop.user_id, booking)
