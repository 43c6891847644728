"""Who may listen in on which realtime room."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.models.order import SupplierOrder
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop, WorkshopStaff
from garagehub.repositories.order import OrderRepository


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


async def can_follow_workshop(db: AsyncSession, user: User, workshop_id) -> bool:
    """Owner, active staff and admins see a workshop's live board."""
    workshop_id = _as_uuid(workshop_id)
    if workshop_id is None:
        return False
    if user.role == "admin":
        return True
    owner_id = (
        await db.execute(select(Workshop.user_id).where(Workshop.id == workshop_id))
    ).scalar_one_or_none()
    if owner_id is not None and owner_id == user.id:
        return True
    staff_id = (
        await db.execute(
            select(WorkshopStaff.id).where(
                WorkshopStaff.workshop_id == workshop_id,
                WorkshopStaff.user_id == user.id,
                WorkshopStaff.is_active == True,  # noqa: E712
            )
        )
    ).scalar_one_or_none()
    return staff_id is not None


async def owns_supplier(db: AsyncSession, user: User, supplier_id) -> bool:
    supplier_id = _as_uuid(supplier_id)
    if supplier_id is None:
        return False
    if user.role == "admin":
        return True
    owner_id = (
        await db.execute(select(Supplier.user_id).where(Supplier.id == supplier_id))
    ).scalar_one_or_none()
    return owner_id is not None and owner_id == user.id


async def can_follow_order(db: AsyncSession, user: User, order_id) -> bool:
    order_id = _as_uuid(order_id)
    if order_id is None:
        return False
    order = await db.get(SupplierOrder, order_id)
    if order is None:
        return False
    return await OrderRepository(db).is_participant(order, user)


async def is_assigned_runner(db: AsyncSession, user: User, order_id) -> bool:
    order_id = _as_uuid(order_id)
    if order_id is None:
        return False
    runner_id = (
        await db.execute(select(SupplierOrder.runner_id).where(SupplierOrder.id == order_id))
    ).scalar_one_or_none()
    return runner_id is not None and runner_id == user.id


async def can_join_shop_chat(db: AsyncSession, user: User, supplier_id, workshop_id) -> bool:
    """Only the two businesses in a marketplace conversation."""
    supplier_id, workshop_id = _as_uuid(supplier_id), _as_uuid(workshop_id)
    if supplier_id is None or workshop_id is None:
        return False
    supplier_owner = (
        await db.execute(select(Supplier.user_id).where(Supplier.id == supplier_id))
    ).scalar_one_or_none()
    workshop_owner = (
        await db.execute(select(Workshop.user_id).where(Workshop.id == workshop_id))
    ).scalar_one_or_none()
    if supplier_owner is None or workshop_owner is None:
        return False
    return user.id in (supplier_owner, workshop_owner)


async def can_join(db: AsyncSession, user: User, room: str) -> bool:
    """Participation check for rooms that pass `is_joinable`.

    Shop rooms are public catalogue channels and carry product ids only.
    """
    if room.startswith("shop:"):
        return _as_uuid(room[len("shop:"):]) is not None
    if room.startswith("workshop."):
        return await can_follow_workshop(db, user, room[len("workshop."):])
    if room.startswith("supplier."):
        return await owns_supplier(db, user, room[len("supplier."):])
    if room.startswith("order."):
        return await can_follow_order(db, user, room[len("order."):])
    return False
