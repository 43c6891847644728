"""In-app notifications: persisted rows plus a realtime "notification" push."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.models.messaging import Notification
from garagehub.models.supplier import Supplier
from garagehub.models.workshop import Workshop
from garagehub.realtime.hub import emit_notification

logger = structlog.get_logger()

CHAT_PREVIEW_LENGTH = 100

ORDER_STATUS_MESSAGES = {
    "created": "New order {ref} received",
    "accepted": "Order {ref} was accepted by the supplier",
    "preparing": "Order {ref} is being prepared",
    "assigned_runner": "A runner has been assigned to order {ref}",
    "delivering": "Order {ref} is on the way",
    "delivered": "Order {ref} has been delivered",
    "cancelled": "Order {ref} was cancelled",
}

BOOKING_STATUS_MESSAGES = {
    "pending": "New booking request for {service}",
    "approved": "Your booking for {service} was approved",
    "rejected": "Your booking for {service} was rejected",
    "workshop_proposed": "The workshop proposed a new date for {service}",
    "completed": "Your booking for {service} is complete",
    "cancelled": "Booking for {service} was cancelled",
}


def short_ref(entity_id) -> str:
    return f"#{str(entity_id)[:8].upper()}"


class NotificationService:
    """Creates notifications and pushes them to the recipient's user room."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_and_emit(
        self,
        user_id: uuid.UUID,
        title: str,
        message: str,
        notification_type: str,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
        )
        self.db.add(notification)
        await self.db.flush()

        await emit_notification(user_id, notification)

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type,
        )
        return notification

    async def notify_order_update(self, order) -> None:
        """Tell the workshop and supplier owners (and runner) about an order change."""
        ref = short_ref(order.id)
        text = ORDER_STATUS_MESSAGES.get(order.status, "Order {ref} was updated").format(ref=ref)

        recipients = await self._order_party_user_ids(order)
        for user_id in recipients:
            await self.create_and_emit(user_id, f"Order {ref}", text, "order_update")

    async def notify_delivery_update(self, order, runner_status: str) -> None:
        ref = short_ref(order.id)
        text = f"Delivery for order {ref} is now {runner_status.replace('_', ' ')}"
        workshop_user_id = await self._workshop_user_id(order.workshop_id)
        if workshop_user_id:
            await self.create_and_emit(workshop_user_id, "Delivery update", text, "delivery_update")

    async def notify_delivery_offer(self, runner_id: uuid.UUID, order, distance_km) -> None:
        ref = short_ref(order.id)
        await self.create_and_emit(
            runner_id,
            "New delivery offer",
            f"Order {ref} is {distance_km} km away",
            "delivery_update",
        )

    async def notify_wallet_transaction(
        self, user_id: uuid.UUID, amount: Decimal, description: str
    ) -> None:
        await self.create_and_emit(
            user_id, "Wallet updated", f"{description}: RM {amount:.2f}", "wallet_transaction"
        )

    async def notify_booking_update(self, user_id: uuid.UUID, booking) -> None:
        text = BOOKING_STATUS_MESSAGES.get(
            booking.status, "Booking for {service} was updated"
        ).format(service=booking.service_type)
        await self.create_and_emit(user_id, "Booking update", text, "booking_update")

    async def notify_job_update(self, job) -> None:
        text = f"{job.service_type} for {job.vehicle_model} is {job.status.replace('_', ' ')}"
        await self.create_and_emit(job.customer_id, "Service job update", text, "job_update")

    async def notify_towing_update(self, user_id: uuid.UUID, request) -> None:
        text = f"Towing request {short_ref(request.id)} is {request.status.replace('_', ' ')}"
        await self.create_and_emit(user_id, "Towing update", text, "towing_update")

    async def notify_chat_message(
        self, receiver_id: Optional[uuid.UUID], sender_name: str, message: str
    ) -> None:
        if receiver_id is None:
            return
        preview = message
        if len(preview) > CHAT_PREVIEW_LENGTH:
            preview = preview[:CHAT_PREVIEW_LENGTH] + "..."
        await self.create_and_emit(
            receiver_id, f"New message from {sender_name}", preview, "chat_message"
        )

    async def _workshop_user_id(self, workshop_id) -> Optional[uuid.UUID]:
        result = await self.db.execute(select(Workshop.user_id).where(Workshop.id == workshop_id))
        return result.scalar_one_or_none()

    async def _supplier_user_id(self, supplier_id) -> Optional[uuid.UUID]:
        result = await self.db.execute(select(Supplier.user_id).where(Supplier.id == supplier_id))
        return result.scalar_one_or_none()

    async def _order_party_user_ids(self, order) -> list[uuid.UUID]:
        user_ids = [
            await self._workshop_user_id(order.workshop_id),
            await self._supplier_user_id(order.supplier_id),
            order.runner_id,
        ]
        return [user_id for user_id in user_ids if user_id]
