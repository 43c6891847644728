"""Wallet schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class WalletResponse(BaseModel):
    user_id: uuid.UUID
    balance: Decimal

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    transaction_type: str
    from_user_id: Optional[uuid.UUID] = None
    to_user_id: Optional[uuid.UUID] = None
    amount: Decimal
    platform_commission: Decimal
    description: Optional[str] = None
    status: str
    reference: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TopupRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class TopupResponse(BaseModel):
    reference: str
    amount: Decimal
    status: str


class TopupConfirm(BaseModel):
    reference: str


class EscrowResponse(BaseModel):
    order_id: uuid.UUID
    status: str
    total_amount: Decimal
    parts_amount: Decimal
    delivery_amount: Decimal
    platform_fee_percent: Decimal
    platform_fee_amount: Decimal
    supplier_payout: Decimal
    runner_payout: Decimal

    model_config = {"from_attributes": True}
