"""Invoice API: printable HTML for jobs and purchase orders."""

import uuid

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_user
from garagehub.database import get_db
from garagehub.errors import PermissionDeniedError
from garagehub.invoices.renderer import (
    job_invoice_context,
    order_invoice_context,
    templates,
)
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.repositories.job import JobRepository
from garagehub.repositories.order import OrderRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])


@router.get("/jobs/{job_id}", response_class=HTMLResponse)
async def job_invoice(
    job_id: uuid.UUID,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Service invoice for the workshop owner or the job's customer."""
    job = await JobRepository(db).get(job_id)
    workshop = await db.get(Workshop, job.workshop_id)
    if user.id not in (job.customer_id, workshop.user_id) and user.role != "admin":
        raise PermissionDeniedError("You cannot view this invoice")

    context = await job_invoice_context(db, job)
    logger.info("invoice_viewed", kind="job", job_id=str(job.id), user_id=str(user.id))
    return templates.TemplateResponse(request, "job_invoice.html", context)


@router.get("/orders/{order_id}", response_class=HTMLResponse)
async def order_invoice(
    order_id: uuid.UUID,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Purchase-order invoice for the ordering workshop or the supplier."""
    repo = OrderRepository(db)
    order = await repo.get(order_id)
    workshop_id, supplier_id = await repo.actor_ids(user)
    if user.role != "admin" and order.workshop_id != workshop_id and order.supplier_id != supplier_id:
        raise PermissionDeniedError("You cannot view this invoice")

    context = await order_invoice_context(db, order)
    logger.info("invoice_viewed", kind="order", order_id=str(order.id), user_id=str(user.id))
    return templates.TemplateResponse(request, "order_invoice.html", context)
