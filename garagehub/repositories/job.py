"""Service job repository."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from garagehub.models.base import utcnow
from garagehub.models.service import Job
from garagehub.models.user import User
from garagehub.models.workshop import Workshop, WorkshopStaff
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_job_update
from garagehub.repositories.workflow import JOB_TRANSITIONS, check_transition
from garagehub.schemas.service import JobCreate, JobUpdate

logger = structlog.get_logger()


class JobRepository:
    """Workshop service jobs for customer vehicles."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get(self, job_id: uuid.UUID) -> Job:
        job = await self.db.get(Job, job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    async def get_for_workshop(self, job_id: uuid.UUID, workshop: Workshop) -> Job:
        job = await self.get(job_id)
        if job.workshop_id != workshop.id:
            raise PermissionDeniedError("This job belongs to another workshop")
        return job

    async def get_for_customer(self, job_id: uuid.UUID, customer: User) -> Job:
        job = await self.get(job_id)
        if job.customer_id != customer.id:
            raise PermissionDeniedError("This job belongs to another customer")
        return job

    async def list(
        self,
        workshop_id: Optional[uuid.UUID] = None,
        customer_id: Optional[uuid.UUID] = None,
        staff_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
    ) -> list[Job]:
        stmt = select(Job)
        if workshop_id is not None:
            stmt = stmt.where(Job.workshop_id == workshop_id)
        if customer_id is not None:
            stmt = stmt.where(Job.customer_id == customer_id)
        if staff_id is not None:
            stmt = stmt.where(Job.assigned_staff_id == staff_id)
        if status:
            stmt = stmt.where(Job.status == status)
        stmt = stmt.order_by(Job.created_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def create(
        self,
        workshop: Workshop,
        data: JobCreate,
        booking_id: Optional[uuid.UUID] = None,
    ) -> Job:
        customer = await self.db.get(User, data.customer_id)
        if customer is None:
            raise NotFoundError("Customer", data.customer_id)
        if data.assigned_staff_id is not None:
            await self._check_staff(workshop, data.assigned_staff_id)

        job = Job(
            workshop_id=workshop.id,
            booking_id=booking_id,
            status="pending",
            progress=0,
            **data.model_dump(),
        )
        self.db.add(job)
        await self.db.flush()

        await emit_job_update(job)
        logger.info("job_created", job_id=str(job.id), workshop_id=str(workshop.id))
        return job

    async def update(self, job: Job, data: JobUpdate, workshop: Workshop) -> Job:
        changes = data.model_dump(exclude_unset=True)
        if changes.get("assigned_staff_id") is not None:
            await self._check_staff(workshop, changes["assigned_staff_id"])
        for field, value in changes.items():
            setattr(job, field, value)
        await self.db.flush()
        await emit_job_update(job)
        return job

    async def update_status(self, job: Job, new_status: str, actual_cost=None) -> Job:
        check_transition(JOB_TRANSITIONS, job.status, new_status, "job")

        previous = job.status
        job.status = new_status
        if actual_cost is not None:
            job.actual_cost = actual_cost
        if new_status == "completed":
            job.progress = 100
            job.completed_date = utcnow()
            workshop = await self.db.get(Workshop, job.workshop_id)
            workshop.completed_jobs = (workshop.completed_jobs or 0) + 1
        await self.db.flush()

        await emit_job_update(job)
        await self.notifications.notify_job_update(job)

        logger.info("job_status_updated", job_id=str(job.id), from_status=previous, to_status=new_status)
        return job

    async def update_progress(self, job: Job, progress: int) -> Job:
        if job.status != "in_progress":
            raise ValidationFailedError("Progress can only change while the job is in progress")
        job.progress = progress
        await self.db.flush()
        await emit_job_update(job)
        return job

    async def _check_staff(self, workshop: Workshop, staff_id: uuid.UUID) -> None:
        staff = await self.db.get(WorkshopStaff, staff_id)
        if staff is None or staff.workshop_id != workshop.id:
            raise ValidationFailedError("Assigned staff member does not work at this workshop")
