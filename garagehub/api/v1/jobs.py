"""Jobs API: workshop service jobs, customer and staff views."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_staff, get_current_workshop, require_roles
from garagehub.database import get_db
from garagehub.models.user import User
from garagehub.models.workshop import Workshop, WorkshopStaff
from garagehub.repositories.job import JobRepository
from garagehub.schemas.service import (
    JobCreate,
    JobProgressUpdate,
    JobResponse,
    JobStatusUpdate,
    JobUpdate,
)

router = APIRouter(prefix="/api/v1", tags=["jobs"])


# Workshop


@router.get("/jobs", response_model=list[JobResponse])
async def list_jobs(
    status: Optional[str] = Query(None),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[JobResponse]:
    jobs = await JobRepository(db).list(workshop_id=workshop.id, status=status)
    return [JobResponse.model_validate(j) for j in jobs]


@router.post("/jobs", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    job = await JobRepository(db).create(workshop, data)
    await db.commit()
    return JobResponse.model_validate(job)


@router.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: uuid.UUID,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    job = await JobRepository(db).get_for_workshop(job_id, workshop)
    return JobResponse.model_validate(job)


@router.patch("/jobs/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: uuid.UUID,
    data: JobUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    repo = JobRepository(db)
    job = await repo.update(await repo.get_for_workshop(job_id, workshop), data, workshop)
    await db.commit()
    return JobResponse.model_validate(job)


@router.patch("/jobs/{job_id}/status", response_model=JobResponse)
async def update_job_status(
    job_id: uuid.UUID,
    data: JobStatusUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    repo = JobRepository(db)
    job = await repo.get_for_workshop(job_id, workshop)
    job = await repo.update_status(job, data.status, data.actual_cost)
    await db.commit()
    return JobResponse.model_validate(job)


@router.patch("/jobs/{job_id}/progress", response_model=JobResponse)
async def update_job_progress(
    job_id: uuid.UUID,
    data: JobProgressUpdate,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    repo = JobRepository(db)
    job = await repo.update_progress(await repo.get_for_workshop(job_id, workshop), data.progress)
    await db.commit()
    return JobResponse.model_validate(job)


# Customer


@router.get("/my/jobs", response_model=list[JobResponse])
async def list_my_jobs(
    customer: User = Depends(require_roles("customer")),
    db: AsyncSession = Depends(get_db),
) -> list[JobResponse]:
    jobs = await JobRepository(db).list(customer_id=customer.id)
    return [JobResponse.model_validate(j) for j in jobs]


@router.get("/my/jobs/{job_id}", response_model=JobResponse)
async def get_my_job(
    job_id: uuid.UUID,
    customer: User = Depends(require_roles("customer")),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    job = await JobRepository(db).get_for_customer(job_id, customer)
    return JobResponse.model_validate(job)


# Staff


@router.get("/staff/me/jobs", response_model=list[JobResponse])
async def list_assigned_jobs(
    staff: WorkshopStaff = Depends(get_current_staff),
    db: AsyncSession = Depends(get_db),
) -> list[JobResponse]:
    jobs = await JobRepository(db).list(workshop_id=staff.workshop_id, staff_id=staff.id)
    return [JobResponse.model_validate(j) for j in jobs]
