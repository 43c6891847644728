"""Workshop inventory repository."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import NotFoundError, ValidationFailedError
from garagehub.models.base import utcnow
from garagehub.models.supplier import Part
from garagehub.models.workshop import InventoryItem

logger = structlog.get_logger()


class InventoryRepository:
    """Stock a workshop holds of marketplace parts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, workshop_id: uuid.UUID, low_stock_only: bool = False) -> list[tuple[InventoryItem, Part]]:
        stmt = (
            select(InventoryItem, Part)
            .join(Part, Part.id == InventoryItem.part_id)
            .where(InventoryItem.workshop_id == workshop_id)
            .order_by(Part.name)
        )
        if low_stock_only:
            stmt = stmt.where(InventoryItem.quantity <= InventoryItem.minimum_stock)
        result = await self.db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def get(self, workshop_id: uuid.UUID, item_id: uuid.UUID) -> InventoryItem:
        result = await self.db.execute(
            select(InventoryItem).where(
                InventoryItem.id == item_id, InventoryItem.workshop_id == workshop_id
            )
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("Inventory item", item_id)
        return item

    async def find_by_part(self, workshop_id: uuid.UUID, part_id: uuid.UUID) -> Optional[InventoryItem]:
        result = await self.db.execute(
            select(InventoryItem).where(
                InventoryItem.workshop_id == workshop_id, InventoryItem.part_id == part_id
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        workshop_id: uuid.UUID,
        part_id: uuid.UUID,
        quantity: int,
        minimum_stock: Optional[int] = None,
        location: Optional[str] = None,
    ) -> InventoryItem:
        """Set the on-hand quantity for a part, creating the row if needed."""
        if quantity < 0:
            raise ValidationFailedError("Quantity cannot be negative")
        part = await self.db.get(Part, part_id)
        if part is None:
            raise NotFoundError("Part", part_id)

        item = await self.find_by_part(workshop_id, part_id)
        if item is None:
            item = InventoryItem(workshop_id=workshop_id, part_id=part_id, quantity=quantity)
            self.db.add(item)
        else:
            item.quantity = quantity
        if minimum_stock is not None:
            item.minimum_stock = minimum_stock
        if location is not None:
            item.location = location
        item.last_restocked = utcnow()
        await self.db.flush()
        return item

    async def adjust(self, item: InventoryItem, delta: int) -> InventoryItem:
        """Add or remove stock; the quantity never goes below zero."""
        new_quantity = item.quantity + delta
        if new_quantity < 0:
            raise ValidationFailedError(
                f"Only {item.quantity} in stock, cannot remove {-delta}"
            )
        item.quantity = new_quantity
        if delta > 0:
            item.last_restocked = utcnow()
        await self.db.flush()

        logger.info(
            "inventory_adjusted",
            item_id=str(item.id),
            delta=delta,
            quantity=new_quantity,
        )
        return item

    async def receive(self, workshop_id: uuid.UUID, part_id: uuid.UUID, quantity: int) -> InventoryItem:
        """Book delivered order items into the workshop's stock."""
        item = await self.find_by_part(workshop_id, part_id)
        if item is None:
            item = InventoryItem(workshop_id=workshop_id, part_id=part_id, quantity=0)
            self.db.add(item)
        item.quantity = (item.quantity or 0) + quantity
        item.last_restocked = utcnow()
        await self.db.flush()
        return item
