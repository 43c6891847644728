"""Inventory API: parts a workshop keeps on its shelves."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.auth.dependencies import get_current_workshop
from garagehub.database import get_db
from garagehub.models.supplier import Part
from garagehub.models.workshop import InventoryItem, Workshop
from garagehub.repositories.inventory import InventoryRepository
from garagehub.schemas.workshop import InventoryAdjust, InventoryResponse, InventoryUpsert

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


def _inventory_item(item: InventoryItem, part: Part) -> InventoryResponse:
    return InventoryResponse(
        id=item.id,
        part_id=item.part_id,
        part_name=part.name,
        sku=part.sku,
        quantity=item.quantity,
        minimum_stock=item.minimum_stock,
        location=item.location,
        low_stock=item.is_low_stock,
        last_restocked=item.last_restocked,
    )


@router.get("", response_model=list[InventoryResponse])
async def list_inventory(
    low_stock: bool = Query(False, description="Only items at or below minimum stock"),
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> list[InventoryResponse]:
    rows = await InventoryRepository(db).list(workshop.id, low_stock_only=low_stock)
    return [_inventory_item(item, part) for item, part in rows]


@router.put("", response_model=InventoryResponse)
async def upsert_inventory(
    data: InventoryUpsert,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> InventoryResponse:
    item = await InventoryRepository(db).upsert(
        workshop.id, data.part_id, data.quantity, data.minimum_stock, data.location
    )
    await db.commit()
    return _inventory_item(item, await db.get(Part, item.part_id))


@router.post("/{item_id}/adjust", response_model=InventoryResponse)
async def adjust_inventory(
    item_id: uuid.UUID,
    data: InventoryAdjust,
    workshop: Workshop = Depends(get_current_workshop),
    db: AsyncSession = Depends(get_db),
) -> InventoryResponse:
    repo = InventoryRepository(db)
    item = await repo.adjust(await repo.get(workshop.id, item_id), data.delta)
    await db.commit()
    return _inventory_item(item, await db.get(Part, item.part_id))
