"""Cart, order and delivery schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

DeliveryType = Literal["pickup", "runner"]
PaymentMethod = Literal["wallet", "bank_transfer", "qr_code"]


class CartItemCreate(BaseModel):
    part_id: uuid.UUID
    quantity: int = Field(1, ge=1, le=999)
    delivery_type: DeliveryType = "pickup"


class CartItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=1, le=999)
    delivery_type: Optional[DeliveryType] = None


class CartItemResponse(BaseModel):
    id: uuid.UUID
    part_id: uuid.UUID
    supplier_id: uuid.UUID
    quantity: int
    delivery_type: str
    part_name: Optional[str] = None
    unit_price: Optional[Decimal] = None


class CheckoutRequest(BaseModel):
    payment_method: PaymentMethod = "wallet"
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


class OrderLine(BaseModel):
    part_id: uuid.UUID
    quantity: int = Field(ge=1, le=999)


class OrderCreate(BaseModel):
    supplier_id: uuid.UUID
    items: List[OrderLine] = Field(min_length=1)
    delivery_type: DeliveryType = "pickup"
    payment_method: PaymentMethod = "wallet"
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: Literal[
        "accepted",
        "preparing",
        "assigned_runner",
        "delivering",
        "delivered",
        "cancelled",
    ]


class OrderReject(BaseModel):
    reason: Optional[str] = None


class QRScanRequest(BaseModel):
    qr_token: str = Field(min_length=1)


class OrderItemResponse(BaseModel):
    id: uuid.UUID
    part_id: uuid.UUID
    quantity: int
    price_at_time: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: uuid.UUID
    workshop_id: uuid.UUID
    supplier_id: uuid.UUID
    runner_id: Optional[uuid.UUID] = None
    status: str
    delivery_type: str
    payment_method: str
    payment_status: str
    items_total: Decimal
    delivery_charge: Decimal
    total_amount: Decimal
    distance_km: Optional[Decimal] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    pickup_id: Optional[str] = None
    qr_expires: Optional[datetime] = None
    qr_scanned_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderQRResponse(BaseModel):
    """Pickup code shown to the workshop (or its runner) only."""

    order_id: uuid.UUID
    pickup_id: Optional[str] = None
    qr_token: Optional[str] = None
    qr_expires: Optional[datetime] = None


class DeliveryOfferResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    runner_id: uuid.UUID
    status: str
    distance_km: Optional[Decimal] = None
    offered_at: datetime
    responded_at: Optional[datetime] = None
    expires_at: datetime

    model_config = {"from_attributes": True}


class DeliveryResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    runner_id: uuid.UUID
    status: str
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    current_lat: Optional[Decimal] = None
    current_lng: Optional[Decimal] = None
    picked_up_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DeliveryStatusUpdate(BaseModel):
    status: Literal["picked_up", "en_route", "delivered"]


class LocationUpdate(BaseModel):
    latitude: Decimal = Field(ge=-90, le=90)
    longitude: Decimal = Field(ge=-180, le=180)
