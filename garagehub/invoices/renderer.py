"""HTML invoices for service jobs and purchase orders."""

from __future__ import annotations

import pathlib
from decimal import Decimal

from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.models.order import SupplierOrder
from garagehub.models.service import Job
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import short_ref

TEMPLATES_DIR = pathlib.Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _money(value) -> str:
    return f"RM {Decimal(value or 0):,.2f}"


templates.env.filters["money"] = _money


async def job_invoice_context(db: AsyncSession, job: Job) -> dict:
    workshop = await db.get(Workshop, job.workshop_id)
    customer = await db.get(User, job.customer_id)
    amount = job.actual_cost if job.actual_cost is not None else job.estimated_cost
    return {
        "invoice_number": f"INV-{short_ref(job.id)[1:]}",
        "issued_at": job.completed_date or job.created_at,
        "workshop": workshop,
        "customer": customer,
        "job": job,
        "amount": amount or Decimal("0"),
    }


async def order_invoice_context(db: AsyncSession, order: SupplierOrder) -> dict:
    workshop = await db.get(Workshop, order.workshop_id)
    supplier = await db.get(Supplier, order.supplier_id)
    lines = [
        {
            "name": item.part.name if item.part is not None else str(item.part_id),
            "sku": item.part.sku if item.part is not None else "",
            "code": item.part.garagehub_code if item.part is not None else "",
            "quantity": item.quantity,
            "unit_price": item.price_at_time,
            "total": item.line_total,
        }
        for item in order.items
    ]
    return {
        "invoice_number": f"PO-{short_ref(order.id)[1:]}",
        "issued_at": order.created_at,
        "order": order,
        "workshop": workshop,
        "supplier": supplier,
        "lines": lines,
    }
