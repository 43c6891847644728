"""Chat and notification schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ChatMessageCreate(BaseModel):
    message: str = Field(min_length=1, max_length=2000)
    image_url: Optional[str] = None


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    supplier_id: Optional[uuid.UUID] = None
    workshop_id: Optional[uuid.UUID] = None
    sender_id: uuid.UUID
    receiver_id: Optional[uuid.UUID] = None
    message: str
    image_url: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ChatThreadResponse(BaseModel):
    workshop_id: uuid.UUID
    workshop_name: str
    last_message: str
    last_message_at: Optional[datetime] = None
    unread_count: int


class NotificationResponse(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    type: str
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
