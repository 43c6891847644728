"""Supplier order, cart and delivery models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from garagehub.models.base import Base, TimestampMixin, UUIDMixin

ORDER_STATUSES = (
    "created",
    "accepted",
    "preparing",
    "assigned_runner",
    "delivering",
    "delivered",
    "cancelled",
)
DELIVERY_TYPES = ("pickup", "runner")
PAYMENT_METHODS = ("wallet", "bank_transfer", "qr_code")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


class SupplierOrder(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "supplier_orders"

    workshop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workshops.id"), nullable=False, index=True
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id"), nullable=False, index=True
    )
    runner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(String(30), default="created")
    delivery_type: Mapped[str] = mapped_column(String(20), default="pickup")  # pickup|runner
    payment_method: Mapped[str] = mapped_column(String(20), default="wallet")
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")

    items_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    delivery_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    distance_km: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pickup verification
    pickup_id: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    qr_token: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)
    qr_expires: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    qr_scanned_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    qr_scanned_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )

    items: Mapped[List["SupplierOrderItem"]] = relationship(
        back_populates="order", lazy="selectin", cascade="all, delete-orphan"
    )


class SupplierOrderItem(Base, UUIDMixin):
    __tablename__ = "supplier_order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("supplier_orders.id"), nullable=False, index=True
    )
    part_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("parts.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_time: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped[SupplierOrder] = relationship(back_populates="items")
    part = relationship("Part", lazy="selectin")

    @property
    def line_total(self) -> Decimal:
        return self.price_at_time * self.quantity


class CartItem(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "cart_items"

    workshop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workshops.id"), nullable=False, index=True
    )
    part_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("parts.id"), nullable=False)
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    delivery_type: Mapped[str] = mapped_column(String(20), default="pickup")

    part = relationship("Part", lazy="selectin")


class DeliveryOffer(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "delivery_offers"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("supplier_orders.id"), nullable=False, index=True
    )
    runner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending|accepted|rejected|expired
    distance_km: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    offered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    responded_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DeliveryAssignment(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "delivery_assignments"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("supplier_orders.id"), unique=True, nullable=False
    )
    runner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")
    pickup_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dropoff_location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    current_lat: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    current_lng: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    picked_up_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
