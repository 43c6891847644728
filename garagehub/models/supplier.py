"""Supplier, product (part) and product code sequence models."""

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from garagehub.models.base import Base, TimestampMixin, UUIDMixin

SUPPLIER_TYPES = ("OEM", "Halfcut")
DELIVERY_METHODS = ("pickup", "runner", "both")

PART_CATEGORIES = (
    "engine",
    "transmission",
    "brake",
    "suspension",
    "electrical",
    "cooling",
    "body",
    "interior",
    "exterior",
    "wheel_tyre",
    "fluids",
    "service",
)


class Supplier(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "suppliers"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), unique=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)

    supplier_type: Mapped[str] = mapped_column(String(20), default="OEM")  # OEM|Halfcut
    delivery_method: Mapped[str] = mapped_column(String(20), default="both")  # pickup|runner|both

    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0"))
    completed_orders: Mapped[int] = mapped_column(Integer, default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)


class SupplierCodeSequence(Base):
    """Last issued short product code per supplier."""

    __tablename__ = "supplier_code_sequences"

    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id"), primary_key=True
    )
    last_code: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Part(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "parts"
    __table_args__ = (UniqueConstraint("supplier_id", "garagehub_code"),)

    supplier_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("suppliers.id"), nullable=False, index=True
    )
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    garagehub_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    supplier_type: Mapped[str] = mapped_column(String(20), default="OEM")

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    part_category: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    # Fitment
    vehicle_make: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    vehicle_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    vehicle_year_from: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    vehicle_year_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    compatibility: Mapped[List[str]] = mapped_column(JSON, default=list)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)
    images: Mapped[List[str]] = mapped_column(JSON, default=list)
