"""Staff, attendance, inventory and review schemas."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class StaffCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    role: str = "mechanic"
    phone: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    basic_salary: Decimal = Field(Decimal("0"), ge=0)
    commission_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    photo_url: Optional[str] = None


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    basic_salary: Optional[Decimal] = Field(None, ge=0)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    photo_url: Optional[str] = None
    is_active: Optional[bool] = None


class StaffResponse(BaseModel):
    id: uuid.UUID
    workshop_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    name: str
    role: str
    phone: Optional[str] = None
    email: Optional[str] = None
    basic_salary: Decimal
    commission_rate: Decimal
    photo_url: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class ClockInRequest(BaseModel):
    latitude: Decimal = Field(ge=-90, le=90)
    longitude: Decimal = Field(ge=-180, le=180)
    verification_method: Literal["gps", "face", "manual"] = "gps"


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    staff_id: uuid.UUID
    attendance_date: date
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    hours_worked: Optional[Decimal] = None
    status: str
    verification_method: str
    distance_m: Optional[float] = None

    model_config = {"from_attributes": True}


class InventoryUpsert(BaseModel):
    part_id: uuid.UUID
    quantity: int = Field(ge=0)
    minimum_stock: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None


class InventoryAdjust(BaseModel):
    delta: int


class InventoryResponse(BaseModel):
    id: uuid.UUID
    part_id: uuid.UUID
    part_name: str
    sku: str
    quantity: int
    minimum_stock: int
    location: Optional[str] = None
    low_stock: bool
    last_restocked: Optional[datetime] = None


class ReviewCreate(BaseModel):
    target_type: Literal["workshop", "supplier", "product"]
    target_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=10, max_length=1000)


class ReviewResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    target_type: str
    target_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
