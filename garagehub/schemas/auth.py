"""Auth and user schemas."""

import re
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from garagehub.auth.passwords import is_valid_phone, password_policy_errors

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegistrationRole(str, Enum):
    CUSTOMER = "customer"
    WORKSHOP = "workshop"
    SUPPLIER = "supplier"
    RUNNER = "runner"
    TOWING = "towing"


class RegisterRequest(BaseModel):
    """Sign-up payload. Business roles carry their profile fields too."""

    email: str
    password: str
    confirm_password: str
    first_name: str = Field(min_length=1, max_length=100)
    last_name: Optional[str] = None
    role: RegistrationRole = RegistrationRole.CUSTOMER.value
    phone: Optional[str] = None

    # Location
    address: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    # Business profile (workshop / supplier)
    business_name: Optional[str] = None
    supplier_type: Optional[str] = None  # OEM | Halfcut
    delivery_method: Optional[str] = None  # pickup | runner | both

    model_config = {"use_enum_values": True}

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("invalid email address")
        return value

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        missing = password_policy_errors(value)
        if missing:
            raise ValueError("password needs " + ", ".join(missing))
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_phone(value):
            raise ValueError("invalid Malaysian phone number")
        return value

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.password != self.confirm_password:
            raise ValueError("passwords do not match")

        if self.role in ("workshop", "supplier"):
            for name in ("business_name", "address", "phone"):
                if not getattr(self, name):
                    raise ValueError(f"{name} is required for {self.role} accounts")
        if self.role in ("workshop", "supplier", "runner"):
            if not self.state or not self.city:
                raise ValueError(f"state and city are required for {self.role} accounts")
        if self.role == "supplier":
            if self.delivery_method not in ("pickup", "runner", "both"):
                raise ValueError("delivery_method must be pickup, runner or both")
            if self.supplier_type not in ("OEM", "Halfcut"):
                raise ValueError("supplier_type must be OEM or Halfcut")
        return self


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        missing = password_policy_errors(value)
        if missing:
            raise ValueError("password needs " + ", ".join(missing))
        return value


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: str
    phone: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    is_active: bool
    is_approved: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_phone(value):
            raise ValueError("invalid Malaysian phone number")
        return value
