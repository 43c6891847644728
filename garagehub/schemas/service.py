"""Booking, job and towing schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    workshop_id: uuid.UUID
    vehicle: str = Field(min_length=1, max_length=200)
    service_type: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    preferred_date: datetime


class BookingProposal(BaseModel):
    proposed_date: datetime
    reason: Optional[str] = None


class BookingApprove(BaseModel):
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    vehicle_plate: Optional[str] = None


class BookingResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    workshop_id: uuid.UUID
    vehicle: str
    service_type: str
    description: Optional[str] = None
    preferred_date: datetime
    proposed_date: Optional[datetime] = None
    proposal_reason: Optional[str] = None
    status: str
    estimated_cost: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class JobCreate(BaseModel):
    customer_id: uuid.UUID
    vehicle_model: str = Field(min_length=1, max_length=200)
    vehicle_plate: Optional[str] = None
    service_type: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    scheduled_date: Optional[datetime] = None
    assigned_staff_id: Optional[uuid.UUID] = None


class JobUpdate(BaseModel):
    vehicle_model: Optional[str] = None
    vehicle_plate: Optional[str] = None
    service_type: Optional[str] = None
    description: Optional[str] = None
    estimated_cost: Optional[Decimal] = Field(None, ge=0)
    actual_cost: Optional[Decimal] = Field(None, ge=0)
    scheduled_date: Optional[datetime] = None
    assigned_staff_id: Optional[uuid.UUID] = None


class JobStatusUpdate(BaseModel):
    status: Literal["in_progress", "completed", "cancelled"]
    actual_cost: Optional[Decimal] = Field(None, ge=0)


class JobProgressUpdate(BaseModel):
    progress: int = Field(ge=0, le=100)


class JobResponse(BaseModel):
    id: uuid.UUID
    workshop_id: uuid.UUID
    customer_id: uuid.UUID
    booking_id: Optional[uuid.UUID] = None
    assigned_staff_id: Optional[uuid.UUID] = None
    vehicle_model: str
    vehicle_plate: Optional[str] = None
    service_type: str
    description: Optional[str] = None
    status: str
    progress: int
    estimated_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TowingCreate(BaseModel):
    pickup_location: str = Field(min_length=1)
    dropoff_location: Optional[str] = None
    workshop_id: Optional[uuid.UUID] = None
    vehicle: Optional[str] = None
    notes: Optional[str] = None


class TowingAssign(BaseModel):
    estimated_cost: Optional[Decimal] = Field(None, ge=0)


class TowingStatusUpdate(BaseModel):
    status: Literal["en_route", "completed", "cancelled"]


class TowingResponse(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    towing_service_id: Optional[uuid.UUID] = None
    workshop_id: Optional[uuid.UUID] = None
    pickup_location: str
    dropoff_location: Optional[str] = None
    vehicle: Optional[str] = None
    notes: Optional[str] = None
    status: str
    estimated_cost: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
