"""Short per-supplier product codes (#001, #002, ...)."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.models.supplier import SupplierCodeSequence

logger = structlog.get_logger()


def format_short_code(number: int) -> str:
    """Zero-pad to three digits; larger numbers simply get wider."""
    return f"#{number:03d}"


async def next_garagehub_code(db: AsyncSession, supplier_id: uuid.UUID) -> str:
    """Reserve the next code for a supplier inside the caller's transaction.

    The counter row is bumped with a single UPDATE so two concurrent
    product creations never receive the same number.
    """
    result = await db.execute(
        update(SupplierCodeSequence)
        .where(SupplierCodeSequence.supplier_id == supplier_id)
        .values(last_code=SupplierCodeSequence.last_code + 1)
        .returning(SupplierCodeSequence.last_code)
        .execution_options(synchronize_session=False)
    )
    number = result.scalar_one_or_none()

    if number is None:
        db.add(SupplierCodeSequence(supplier_id=supplier_id, last_code=1))
        await db.flush()
        number = 1

    code = format_short_code(number)
    logger.debug("garagehub_code_issued", supplier_id=str(supplier_id), code=code)
    return code
