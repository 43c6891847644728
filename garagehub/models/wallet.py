"""Wallet, ledger and escrow models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from garagehub.models.base import Base, TimestampMixin, UUIDMixin

TRANSACTION_TYPES = (
    "order_payment",
    "escrow_hold",
    "escrow_release",
    "platform_fee",
    "supplier_payout",
    "runner_payout",
    "delivery_fee",
    "refund",
    "adjustment",
    "topup",
    "withdrawal",
)


class Wallet(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "wallets"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), unique=True, nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))


class TransactionLog(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "transaction_logs"

    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("supplier_orders.id"), nullable=True, index=True
    )
    transaction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    from_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, index=True
    )
    to_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    platform_commission: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="completed")  # pending|completed|failed
    reference: Mapped[Optional[str]] = mapped_column(String(64), unique=True, nullable=True)


class PlatformEscrow(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "platform_escrow"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("supplier_orders.id"), unique=True, nullable=False
    )
    workshop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("workshops.id"), nullable=False
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id"), nullable=False
    )
    runner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    parts_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    platform_fee_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("5"))
    platform_fee_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    supplier_payout: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    runner_payout: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    status: Mapped[str] = mapped_column(String(20), default="holding")  # holding|released|refunded
    hold_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    release_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
