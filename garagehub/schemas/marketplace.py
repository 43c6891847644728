"""Supplier, workshop and product schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class WorkshopResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    address: str
    phone: str
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    geofence_radius: int
    rating: Decimal
    completed_jobs: int
    is_verified: bool

    model_config = {"from_attributes": True}


class WorkshopUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    geofence_radius: Optional[int] = Field(None, ge=10, le=5000)


class SupplierResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    address: str
    phone: str
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    supplier_type: str
    delivery_method: str
    rating: Decimal
    completed_orders: int
    is_verified: bool

    model_config = {"from_attributes": True}


class SupplierDetail(SupplierResponse):
    product_count: int = 0
    categories: List[str] = []


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    delivery_method: Optional[str] = Field(None, pattern="^(pickup|runner|both)$")


class PartCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    part_category: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year_from: Optional[int] = Field(None, ge=1950, le=2100)
    vehicle_year_to: Optional[int] = Field(None, ge=1950, le=2100)
    compatibility: List[str] = []
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    images: List[str] = []

    @model_validator(mode="after")
    def check_years(self):
        if (
            self.vehicle_year_from is not None
            and self.vehicle_year_to is not None
            and self.vehicle_year_from > self.vehicle_year_to
        ):
            raise ValueError("vehicle_year_from must not be after vehicle_year_to")
        return self


class PartUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    part_category: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year_from: Optional[int] = Field(None, ge=1950, le=2100)
    vehicle_year_to: Optional[int] = Field(None, ge=1950, le=2100)
    compatibility: Optional[List[str]] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None


class StockAdjust(BaseModel):
    delta: int


class PartResponse(BaseModel):
    id: uuid.UUID
    supplier_id: uuid.UUID
    sku: str
    garagehub_code: Optional[str] = None
    supplier_type: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    part_category: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year_from: Optional[int] = None
    vehicle_year_to: Optional[int] = None
    compatibility: List[str] = []
    price: Decimal
    stock_quantity: int
    images: List[str] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    supplier_id: uuid.UUID
    item_count: int
    distance_km: Optional[float] = None
    delivery_charge: Optional[Decimal] = None
    runner_available: bool
