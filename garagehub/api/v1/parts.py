"""Parts API: supplier product management."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_supplier
from garagehub.database import get_db
from garagehub.models.supplier import Supplier
from garagehub.repositories.part import PartRepository
from garagehub.schemas.marketplace import PartCreate, PartResponse, PartUpdate, StockAdjust

router = APIRouter(prefix="/api/v1/parts", tags=["parts"])


@router.get("")
async def list_my_parts(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> dict:
    parts, total = await PartRepository(db).search(
        supplier_id=supplier.id, q=q, category=category, limit=limit, offset=offset
    )
    return {
        "products": [PartResponse.model_validate(p) for p in parts],
        "total": total,
    }


@router.post("", response_model=PartResponse, status_code=201)
async def create_part(
    data: PartCreate,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> PartResponse:
    """Add a product; it gets the supplier's next GarageHub code."""
    part = await PartRepository(db).create(supplier, data)
    await db.commit()
    return PartResponse.model_validate(part)


@router.get("/{part_id}", response_model=PartResponse)
async def get_part(
    part_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PartResponse:
    part = await PartRepository(db).get(part_id)
    return PartResponse.model_validate(part)


@router.patch("/{part_id}", response_model=PartResponse)
async def update_part(
    part_id: uuid.UUID,
    data: PartUpdate,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> PartResponse:
    repo = PartRepository(db)
    part = await repo.update(await repo.get_owned(part_id, supplier), data)
    await db.commit()
    return PartResponse.model_validate(part)


@router.post("/{part_id}/stock", response_model=PartResponse)
async def adjust_stock(
    part_id: uuid.UUID,
    data: StockAdjust,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> PartResponse:
    repo = PartRepository(db)
    part = await repo.adjust_stock(await repo.get_owned(part_id, supplier), data.delta)
    await db.commit()
    return PartResponse.model_validate(part)


@router.delete("/{part_id}", status_code=204)
async def delete_part(
    part_id: uuid.UUID,
    supplier: Supplier = Depends(get_current_supplier),
    db: AsyncSession = Depends(get_db),
) -> None:
    repo = PartRepository(db)
    await repo.delete(await repo.get_owned(part_id, supplier))
    await db.commit()
