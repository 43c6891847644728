"""Workshop shopping cart."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import NotFoundError, ValidationFailedError
from garagehub.models.order import CartItem
from garagehub.models.supplier import Part, Supplier
from garagehub.models.workshop import Workshop

logger = structlog.get_logger()


class CartRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, workshop: Workshop) -> list[CartItem]:
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.workshop_id == workshop.id)
            .order_by(CartItem.created_at)
        )
        return list(result.scalars().all())

    async def get(self, workshop: Workshop, item_id: uuid.UUID) -> CartItem:
        result = await self.db.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.workshop_id == workshop.id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("Cart item", item_id)
        return item

    async def add(
        self, workshop: Workshop, part_id: uuid.UUID, quantity: int, delivery_type: str
    ) -> CartItem:
        """Add a part to the cart; adding the same part again bumps its quantity."""
        part = await self.db.get(Part, part_id)
        if part is None:
            raise NotFoundError("Part", part_id)
        supplier = await self.db.get(Supplier, part.supplier_id)
        _check_delivery(supplier, delivery_type)

        result = await self.db.execute(
            select(CartItem).where(CartItem.workshop_id == workshop.id, CartItem.part_id == part_id)
        )
        item = result.scalar_one_or_none()
        new_quantity = quantity + (item.quantity if item is not None else 0)
        if new_quantity > part.stock_quantity:
            raise ValidationFailedError(f"Only {part.stock_quantity} of {part.name} in stock")

        if item is None:
            item = CartItem(
                workshop_id=workshop.id,
                part=part,
                supplier_id=part.supplier_id,
                quantity=new_quantity,
                delivery_type=delivery_type,
            )
            self.db.add(item)
        else:
            item.quantity = new_quantity
            item.delivery_type = delivery_type
        await self.db.flush()

        logger.info("cart_item_added", workshop_id=str(workshop.id), part_id=str(part_id), quantity=new_quantity)
        return item

    async def update(
        self, item: CartItem, quantity: Optional[int] = None, delivery_type: Optional[str] = None
    ) -> CartItem:
        if quantity is not None:
            part = await self.db.get(Part, item.part_id)
            if quantity > part.stock_quantity:
                raise ValidationFailedError(f"Only {part.stock_quantity} of {part.name} in stock")
            item.quantity = quantity
        if delivery_type is not None:
            supplier = await self.db.get(Supplier, item.supplier_id)
            _check_delivery(supplier, delivery_type)
            item.delivery_type = delivery_type
        await self.db.flush()
        return item

    async def remove(self, item: CartItem) -> None:
        await self.db.delete(item)
        await self.db.flush()

    async def clear(self, workshop: Workshop) -> None:
        await self.db.execute(delete(CartItem).where(CartItem.workshop_id == workshop.id))


def _check_delivery(supplier: Supplier, delivery_type: str) -> None:
    if supplier.delivery_method != "both" and supplier.delivery_method != delivery_type:
        raise ValidationFailedError(f"{supplier.name} only offers {supplier.delivery_method} delivery")
