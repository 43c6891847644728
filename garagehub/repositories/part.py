"""Part (product) and supplier catalogue repository."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from garagehub.marketplace.catalog import normalize_supplier_type
from garagehub.marketplace.codes import next_garagehub_code
from garagehub.models.order import CartItem, SupplierOrderItem
from garagehub.models.supplier import Part, Supplier
from garagehub.models.workshop import InventoryItem
from garagehub.realtime.hub import emit_product_event
from garagehub.schemas.marketplace import PartCreate, PartUpdate

logger = structlog.get_logger()


class PartRepository:
    """Supplier-owned products and marketplace browsing."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, part_id: uuid.UUID) -> Part:
        part = await self.db.get(Part, part_id)
        if part is None:
            raise NotFoundError("Part", part_id)
        return part

    async def get_owned(self, part_id: uuid.UUID, supplier: Supplier) -> Part:
        part = await self.get(part_id)
        if part.supplier_id != supplier.id:
            raise PermissionDeniedError("This product belongs to another supplier")
        return part

    async def create(self, supplier: Supplier, data: PartCreate) -> Part:
        existing = await self.db.execute(select(Part.id).where(Part.sku == data.sku))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"SKU {data.sku} already exists")

        part = Part(
            supplier_id=supplier.id,
            supplier_type=supplier.supplier_type,
            garagehub_code=await next_garagehub_code(self.db, supplier.id),
            **data.model_dump(),
        )
        self.db.add(part)
        await self.db.flush()

        await emit_product_event(supplier.id, "created", part.id)
        logger.info(
            "part_created",
            part_id=str(part.id),
            supplier_id=str(supplier.id),
            code=part.garagehub_code,
        )
        return part

    async def update(self, part: Part, data: PartUpdate) -> Part:
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(part, field, value)
        if (
            part.vehicle_year_from is not None
            and part.vehicle_year_to is not None
            and part.vehicle_year_from > part.vehicle_year_to
        ):
            raise ValidationFailedError("vehicle_year_from must not be after vehicle_year_to")
        await self.db.flush()

        await emit_product_event(part.supplier_id, "updated", part.id)
        logger.info("part_updated", part_id=str(part.id), fields=sorted(changes))
        return part

    async def adjust_stock(self, part: Part, delta: int) -> Part:
        new_quantity = part.stock_quantity + delta
        if new_quantity < 0:
            raise ValidationFailedError(
                f"Only {part.stock_quantity} in stock, cannot remove {-delta}"
            )
        part.stock_quantity = new_quantity
        await self.db.flush()

        await emit_product_event(part.supplier_id, "updated", part.id)
        return part

    async def delete(self, part: Part) -> None:
        """Remove a product that was never ordered or stocked by a workshop."""
        supplier_id, part_id = part.supplier_id, part.id
        ordered = (
            await self.db.execute(
                select(func.count()).select_from(SupplierOrderItem).where(SupplierOrderItem.part_id == part_id)
            )
        ).scalar_one()
        stocked = (
            await self.db.execute(
                select(func.count()).select_from(InventoryItem).where(InventoryItem.part_id == part_id)
            )
        ).scalar_one()
        if ordered or stocked:
            raise ConflictError("Product is referenced by orders or inventory, set its stock to 0 instead")

        await self.db.execute(delete(CartItem).where(CartItem.part_id == part_id))
        await self.db.delete(part)
        await self.db.flush()

        await emit_product_event(supplier_id, "deleted", part_id)
        logger.info("part_deleted", part_id=str(part_id), supplier_id=str(supplier_id))

    # Marketplace browsing

    async def list_suppliers(
        self,
        supplier_type: Optional[str] = None,
        state: Optional[str] = None,
        q: Optional[str] = None,
    ) -> list[Supplier]:
        stmt = select(Supplier)
        if supplier_type:
            stmt = stmt.where(Supplier.supplier_type == normalize_supplier_type(supplier_type))
        if state:
            stmt = stmt.where(Supplier.state == state)
        if q:
            pattern = f"%{q.strip()}%"
            stmt = stmt.where(or_(Supplier.name.ilike(pattern), Supplier.city.ilike(pattern)))
        stmt = stmt.order_by(Supplier.rating.desc(), Supplier.name)
        return list((await self.db.execute(stmt)).scalars().all())

    async def supplier_detail(self, supplier_id: uuid.UUID) -> tuple[Supplier, int, list[str]]:
        """Supplier with its product count and distinct product categories."""
        supplier = await self.db.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)

        product_count = (
            await self.db.execute(
                select(func.count()).select_from(Part).where(Part.supplier_id == supplier_id)
            )
        ).scalar_one()
        categories = (
            await self.db.execute(
                select(Part.category)
                .where(Part.supplier_id == supplier_id, Part.category.is_not(None))
                .distinct()
                .order_by(Part.category)
            )
        ).scalars().all()
        return supplier, product_count, list(categories)

    async def search(
        self,
        supplier_id: Optional[uuid.UUID] = None,
        q: Optional[str] = None,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        category: Optional[str] = None,
        in_stock: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Part], int]:
        """Filter products; returns (page, total)."""
        stmt = select(Part)
        if supplier_id is not None:
            stmt = stmt.where(Part.supplier_id == supplier_id)
        if q:
            pattern = f"%{q.strip()}%"
            stmt = stmt.where(
                or_(
                    Part.name.ilike(pattern),
                    Part.sku.ilike(pattern),
                    Part.garagehub_code.ilike(pattern),
                )
            )
        if brand:
            stmt = stmt.where(Part.vehicle_make.ilike(brand))
        if model:
            stmt = stmt.where(Part.vehicle_model.ilike(f"%{model}%"))
        if category:
            stmt = stmt.where(
                or_(Part.category.ilike(category), Part.part_category == category.lower())
            )
        if in_stock:
            stmt = stmt.where(Part.stock_quantity > 0)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(Part.created_at.desc()).offset(offset).limit(limit)
        parts = list((await self.db.execute(stmt)).scalars().all())
        return parts, total
