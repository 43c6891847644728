"""Supplier order repository: checkout, status workflow and pickup QR."""

from __future__ import annotations

import secrets
import uuid
from collections import OrderedDict
from datetime import timedelta
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.config import settings
from garagehub.dispatch.offers import DispatchService
from garagehub.errors import (
    InvalidStatusTransitionError,
    NotFoundError,
    PermissionDeniedError,
    QRAlreadyScannedError,
    QRExpiredError,
    QRNotFoundError,
    ValidationFailedError,
)
from garagehub.marketplace.geo import delivery_charge, distance_between, to_cents
from garagehub.models.base import ensure_utc, utcnow
from garagehub.models.order import (
    CartItem,
    DeliveryAssignment,
    SupplierOrder,
    SupplierOrderItem,
)
from garagehub.models.supplier import Part, Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_delivery_updated, emit_order_updated
from garagehub.repositories.inventory import InventoryRepository
from garagehub.repositories.workflow import ORDER_TRANSITIONS, check_transition
from garagehub.wallet.ledger import WalletService

logger = structlog.get_logger()

# Statuses each party may set through the generic status endpoint
SUPPLIER_SETTABLE = {"accepted", "preparing", "delivered", "cancelled"}
RUNNER_SETTABLE = {"delivering", "delivered"}


class OrderRepository:
    """Creates supplier orders and moves them through their lifecycle."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.wallet = WalletService(db)
        self.notifications = NotificationService(db)
        self.dispatch = DispatchService(db)
        self.inventory = InventoryRepository(db)

    # Lookup

    async def get(self, order_id: uuid.UUID, for_update: bool = False) -> SupplierOrder:
        stmt = select(SupplierOrder).where(SupplierOrder.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        order = (await self.db.execute(stmt)).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def actor_ids(self, user: User) -> tuple[Optional[uuid.UUID], Optional[uuid.UUID]]:
        """(workshop_id, supplier_id) owned by the user, if any."""
        workshop_id = supplier_id = None
        if user.role == "workshop":
            workshop_id = (
                await self.db.execute(select(Workshop.id).where(Workshop.user_id == user.id))
            ).scalar_one_or_none()
        elif user.role == "supplier":
            supplier_id = (
                await self.db.execute(select(Supplier.id).where(Supplier.user_id == user.id))
            ).scalar_one_or_none()
        return workshop_id, supplier_id

    async def is_participant(self, order: SupplierOrder, user: User) -> bool:
        if user.role == "admin":
            return True
        if order.runner_id is not None and order.runner_id == user.id:
            return True
        workshop_id, supplier_id = await self.actor_ids(user)
        return (workshop_id is not None and order.workshop_id == workshop_id) or (
            supplier_id is not None and order.supplier_id == supplier_id
        )

    async def get_for_user(self, order_id: uuid.UUID, user: User) -> SupplierOrder:
        order = await self.get(order_id)
        if not await self.is_participant(order, user):
            raise PermissionDeniedError("You are not part of this order")
        return order

    async def list_for_user(self, user: User, status: Optional[str] = None) -> list[SupplierOrder]:
        stmt = select(SupplierOrder)
        if user.role == "workshop" or user.role == "supplier":
            workshop_id, supplier_id = await self.actor_ids(user)
            if workshop_id is not None:
                stmt = stmt.where(SupplierOrder.workshop_id == workshop_id)
            else:
                stmt = stmt.where(SupplierOrder.supplier_id == supplier_id)
        elif user.role == "runner":
            stmt = stmt.where(SupplierOrder.runner_id == user.id)
        elif user.role != "admin":
            raise PermissionDeniedError("Orders are not available for this role")

        if status:
            stmt = stmt.where(SupplierOrder.status == status)
        stmt = stmt.order_by(SupplierOrder.created_at.desc())
        return list((await self.db.execute(stmt)).scalars().all())

    async def list_available_for_runners(self) -> list[SupplierOrder]:
        stmt = (
            select(SupplierOrder)
            .where(
                SupplierOrder.status == "preparing",
                SupplierOrder.delivery_type == "runner",
                SupplierOrder.runner_id.is_(None),
            )
            .order_by(SupplierOrder.created_at)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    # Creation

    async def quote(self, workshop: Workshop, supplier: Supplier, item_count: int) -> dict:
        distance = distance_between(supplier, workshop)
        charge = delivery_charge(item_count, distance) if distance is not None else None
        return {
            "supplier_id": supplier.id,
            "item_count": item_count,
            "distance_km": distance,
            "delivery_charge": charge,
            "runner_available": supplier.delivery_method in ("runner", "both"),
        }

    async def create_order(
        self,
        workshop: Workshop,
        supplier_id: uuid.UUID,
        lines: list[tuple[uuid.UUID, int]],
        delivery_type: str = "pickup",
        payment_method: str = "wallet",
        delivery_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> SupplierOrder:
        """Place one order with one supplier.

        Stock is reserved immediately. Wallet orders are charged and the
        money is held in escrow until delivery.

        Args:
            workshop: Ordering workshop
            supplier_id: Supplier every line must belong to
            lines: (part_id, quantity) pairs
            delivery_type: "pickup" or "runner"
            payment_method: "wallet", "bank_transfer" or "qr_code"
            delivery_address: Drop-off address for runner delivery
            notes: Free text for the supplier

        Returns:
            The created order with its items
        """
        supplier = await self.db.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)
        if not lines:
            raise ValidationFailedError("Order has no items")
        self._check_delivery_method(supplier, delivery_type)

        items = []
        items_total = Decimal("0.00")
        unit_count = 0
        for part_id, quantity in lines:
            if quantity <= 0:
                raise ValidationFailedError("Quantity must be at least 1")
            part = (
                await self.db.execute(select(Part).where(Part.id == part_id).with_for_update())
            ).scalar_one_or_none()
            if part is None:
                raise NotFoundError("Part", part_id)
            if part.supplier_id != supplier.id:
                raise ValidationFailedError(f"{part.name} is not sold by {supplier.name}")
            if part.stock_quantity < quantity:
                raise ValidationFailedError(
                    f"Only {part.stock_quantity} of {part.name} in stock"
                )

            part.stock_quantity -= quantity
            items.append(SupplierOrderItem(part=part, quantity=quantity, price_at_time=part.price))
            items_total += part.price * quantity
            unit_count += quantity

        distance = distance_between(supplier, workshop)
        charge = Decimal("0.00")
        if delivery_type == "runner":
            if distance is None:
                raise ValidationFailedError(
                    "Runner delivery needs both workshop and supplier locations"
                )
            charge = delivery_charge(unit_count, distance)

        items_total = to_cents(items_total)
        order = SupplierOrder(
            workshop_id=workshop.id,
            supplier_id=supplier.id,
            status="created",
            delivery_type=delivery_type,
            payment_method=payment_method,
            payment_status="pending",
            items_total=items_total,
            delivery_charge=charge,
            total_amount=to_cents(items_total + charge),
            distance_km=to_cents(distance) if distance is not None else None,
            delivery_address=delivery_address or workshop.address,
            notes=notes,
            items=items,
        )
        self.db.add(order)
        await self.db.flush()

        if payment_method == "wallet":
            await self.wallet.hold_order_payment(order, workshop.user_id)

        await emit_order_updated(order)
        await self.notifications.notify_order_update(order)

        logger.info(
            "order_created",
            order_id=str(order.id),
            workshop_id=str(workshop.id),
            supplier_id=str(supplier.id),
            total=str(order.total_amount),
            delivery_type=delivery_type,
        )
        return order

    async def checkout_cart(
        self,
        workshop: Workshop,
        payment_method: str = "wallet",
        delivery_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> list[SupplierOrder]:
        """Turn the workshop's cart into one order per supplier and empty it."""
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.workshop_id == workshop.id)
            .order_by(CartItem.created_at)
        )
        cart_items = list(result.scalars().all())
        if not cart_items:
            raise ValidationFailedError("Cart is empty")

        by_supplier: OrderedDict[uuid.UUID, list[CartItem]] = OrderedDict()
        for item in cart_items:
            by_supplier.setdefault(item.supplier_id, []).append(item)

        orders = []
        for supplier_id, group in by_supplier.items():
            delivery_type = "runner" if any(i.delivery_type == "runner" for i in group) else "pickup"
            orders.append(
                await self.create_order(
                    workshop,
                    supplier_id,
                    [(i.part_id, i.quantity) for i in group],
                    delivery_type=delivery_type,
                    payment_method=payment_method,
                    delivery_address=delivery_address,
                    notes=notes,
                )
            )

        await self.db.execute(delete(CartItem).where(CartItem.workshop_id == workshop.id))
        logger.info("cart_checked_out", workshop_id=str(workshop.id), orders=len(orders))
        return orders

    # Status workflow

    async def change_status(self, order: SupplierOrder, new_status: str, user: User) -> SupplierOrder:
        """Status change requested through the API, with per-role limits."""
        if user.role != "admin":
            workshop_id, supplier_id = await self.actor_ids(user)
            if supplier_id is not None and order.supplier_id == supplier_id:
                allowed = new_status in SUPPLIER_SETTABLE
            elif workshop_id is not None and order.workshop_id == workshop_id:
                allowed = new_status == "cancelled" and order.status == "created"
            elif order.runner_id is not None and order.runner_id == user.id:
                allowed = new_status in RUNNER_SETTABLE
            else:
                raise PermissionDeniedError("You are not part of this order")
            if not allowed:
                raise PermissionDeniedError(f"You cannot set this order to '{new_status}'")

        return await self.apply_status(order, new_status)

    async def apply_status(self, order: SupplierOrder, new_status: str) -> SupplierOrder:
        """Move an order and run the side effects of the new status."""
        check_transition(ORDER_TRANSITIONS, order.status, new_status, "order")

        if order.status == "preparing":
            if new_status == "delivered" and order.delivery_type != "pickup":
                raise InvalidStatusTransitionError(order.status, new_status, "runner order")
            if new_status == "assigned_runner" and order.delivery_type != "runner":
                raise InvalidStatusTransitionError(order.status, new_status, "pickup order")
        if new_status == "assigned_runner" and order.runner_id is None:
            raise ValidationFailedError("A runner must accept a delivery offer first")

        previous = order.status
        order.status = new_status

        if new_status == "accepted":
            self._issue_pickup_code(order)
        elif new_status == "preparing" and order.delivery_type == "runner":
            await self.dispatch.create_offers(order)
        elif new_status == "delivering":
            await self._sync_assignment(order, "en_route")
        elif new_status == "delivered":
            await self._complete(order)
        elif new_status == "cancelled":
            await self._cancel(order)

        await self.db.flush()
        await emit_order_updated(order)
        await self.notifications.notify_order_update(order)

        logger.info(
            "order_status_updated",
            order_id=str(order.id),
            from_status=previous,
            to_status=new_status,
        )
        return order

    async def accept(self, order: SupplierOrder) -> SupplierOrder:
        return await self.apply_status(order, "accepted")

    async def reject(self, order: SupplierOrder, reason: Optional[str] = None) -> SupplierOrder:
        if reason:
            order.notes = f"{order.notes}\nRejected: {reason}" if order.notes else f"Rejected: {reason}"
        return await self.apply_status(order, "cancelled")

    async def scan_pickup_qr(self, supplier: Supplier, qr_token: str, scanned_by: User) -> SupplierOrder:
        """Verify a pickup QR at the supplier counter.

        Pickup orders are handed over (delivered); runner orders leave
        with the runner (delivering).

        Raises:
            QRNotFoundError: unknown token or another supplier's order
            QRAlreadyScannedError: token was used before
            QRExpiredError: token is past its validity window
        """
        result = await self.db.execute(
            select(SupplierOrder).where(SupplierOrder.qr_token == qr_token).with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None or order.supplier_id != supplier.id:
            logger.warning("qr_scan_not_found", supplier_id=str(supplier.id))
            raise QRNotFoundError()
        if order.qr_scanned_at is not None:
            raise QRAlreadyScannedError()
        if order.qr_expires is not None and ensure_utc(order.qr_expires) < utcnow():
            raise QRExpiredError()

        order.qr_scanned_at = utcnow()
        order.qr_scanned_by = scanned_by.id

        if order.delivery_type == "pickup":
            if order.status == "accepted":
                await self.apply_status(order, "preparing")
            await self.apply_status(order, "delivered")
        else:
            await self.apply_status(order, "delivering")

        logger.info("qr_scanned", order_id=str(order.id), status=order.status)
        return order

    # Side effects

    def _check_delivery_method(self, supplier: Supplier, delivery_type: str) -> None:
        if delivery_type not in ("pickup", "runner"):
            raise ValidationFailedError(f"Unknown delivery type '{delivery_type}'")
        if supplier.delivery_method != "both" and supplier.delivery_method != delivery_type:
            raise ValidationFailedError(
                f"{supplier.name} only offers {supplier.delivery_method} delivery"
            )

    def _issue_pickup_code(self, order: SupplierOrder) -> None:
        order.pickup_id = f"GH-{secrets.token_hex(4).upper()}"
        order.qr_token = secrets.token_urlsafe(24)
        order.qr_expires = utcnow() + timedelta(hours=settings.qr_valid_hours)

    async def _assignment(self, order: SupplierOrder) -> Optional[DeliveryAssignment]:
        result = await self.db.execute(
            select(DeliveryAssignment).where(DeliveryAssignment.order_id == order.id)
        )
        return result.scalar_one_or_none()

    async def _sync_assignment(self, order: SupplierOrder, status: str) -> None:
        assignment = await self._assignment(order)
        if assignment is None or assignment.status == status:
            return
        now = utcnow()
        if status in ("picked_up", "en_route") and assignment.picked_up_at is None:
            assignment.picked_up_at = now
        if status == "delivered":
            assignment.delivered_at = now
        assignment.status = status
        await emit_delivery_updated(order.id, status, assignment.runner_id)

    async def _complete(self, order: SupplierOrder) -> None:
        await self.wallet.release_escrow(order)

        supplier = await self.db.get(Supplier, order.supplier_id)
        supplier.completed_orders = (supplier.completed_orders or 0) + 1

        for item in order.items:
            await self.inventory.receive(order.workshop_id, item.part_id, item.quantity)

        await self._sync_assignment(order, "delivered")

    async def _cancel(self, order: SupplierOrder) -> None:
        await self.wallet.refund_escrow(order)

        for item in order.items:
            part = await self.db.get(Part, item.part_id)
            if part is not None:
                part.stock_quantity += item.quantity

        await self.dispatch.expire_for_order(order.id)
        await self._sync_assignment(order, "cancelled")
