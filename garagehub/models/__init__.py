"""SQLAlchemy ORM models."""

from garagehub.models.base import Base
from garagehub.models.user import User
from garagehub.models.workshop import InventoryItem, StaffAttendance, Workshop, WorkshopStaff
from garagehub.models.supplier import Part, Supplier, SupplierCodeSequence
from garagehub.models.order import (
    CartItem,
    DeliveryAssignment,
    DeliveryOffer,
    SupplierOrder,
    SupplierOrderItem,
)
from garagehub.models.service import Booking, Job, TowingRequest
from garagehub.models.wallet import PlatformEscrow, TransactionLog, Wallet
from garagehub.models.messaging import ChatMessage, Notification
from garagehub.models.review import Review

__all__ = [
    "Base",
    "User",
    "Workshop",
    "WorkshopStaff",
    "StaffAttendance",
    "InventoryItem",
    "Supplier",
    "SupplierCodeSequence",
    "Part",
    "SupplierOrder",
    "SupplierOrderItem",
    "CartItem",
    "DeliveryOffer",
    "DeliveryAssignment",
    "Booking",
    "Job",
    "TowingRequest",
    "Wallet",
    "TransactionLog",
    "PlatformEscrow",
    "ChatMessage",
    "Notification",
    "Review",
]
