"""Chat repository: order threads and supplier/workshop rooms."""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from garagehub.models.messaging import ChatMessage
from garagehub.models.order import SupplierOrder
from garagehub.models.supplier import Supplier
from garagehub.models.user import User
from garagehub.models.workshop import Workshop
from garagehub.notifications.service import NotificationService
from garagehub.realtime.hub import emit_chat_message, order_chat_room, shop_chat_room

logger = structlog.get_logger()


class ChatRepository:
    """Stores chat messages and fans them out to the right room."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # Order threads

    async def list_order_messages(self, order_id: uuid.UUID) -> list[ChatMessage]:
        result = await self.db.execute(
            select(ChatMessage)
            .where(ChatMessage.order_id == order_id)
            .order_by(ChatMessage.created_at)
        )
        return list(result.scalars().all())

    async def post_order_message(
        self,
        order: SupplierOrder,
        sender: User,
        message: str,
        image_url: Optional[str] = None,
    ) -> ChatMessage:
        workshop_user_id = await self._workshop_user_id(order.workshop_id)
        supplier_user_id = await self._supplier_user_id(order.supplier_id)
        # Supplier and runner talk to the workshop; the workshop talks to the supplier
        receiver_id = supplier_user_id if sender.id == workshop_user_id else workshop_user_id

        chat = ChatMessage(
            order_id=order.id,
            supplier_id=order.supplier_id,
            workshop_id=order.workshop_id,
            sender_id=sender.id,
            receiver_id=receiver_id,
            message=message,
            image_url=image_url,
        )
        return await self._deliver(chat, order_chat_room(order.id), sender)

    async def mark_order_read(self, order_id: uuid.UUID, reader_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(ChatMessage)
            .where(
                ChatMessage.order_id == order_id,
                ChatMessage.receiver_id == reader_id,
                ChatMessage.is_read == False,  # noqa: E712
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    # Supplier/workshop rooms (no order)

    async def list_room_messages(self, supplier_id: uuid.UUID, workshop_id: uuid.UUID) -> list[ChatMessage]:
        result = await self.db.execute(
            select(ChatMessage)
            .where(
                ChatMessage.order_id.is_(None),
                ChatMessage.supplier_id == supplier_id,
                ChatMessage.workshop_id == workshop_id,
            )
            .order_by(ChatMessage.created_at)
        )
        return list(result.scalars().all())

    async def post_room_message(
        self,
        supplier: Supplier,
        workshop: Workshop,
        sender: User,
        message: str,
        image_url: Optional[str] = None,
    ) -> ChatMessage:
        receiver_id = supplier.user_id if sender.id == workshop.user_id else workshop.user_id
        chat = ChatMessage(
            order_id=None,
            supplier_id=supplier.id,
            workshop_id=workshop.id,
            sender_id=sender.id,
            receiver_id=receiver_id,
            message=message,
            image_url=image_url,
        )
        return await self._deliver(chat, shop_chat_room(supplier.id, workshop.id), sender)

    async def mark_room_read(self, supplier_id: uuid.UUID, workshop_id: uuid.UUID, reader_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(ChatMessage)
            .where(
                ChatMessage.order_id.is_(None),
                ChatMessage.supplier_id == supplier_id,
                ChatMessage.workshop_id == workshop_id,
                ChatMessage.receiver_id == reader_id,
                ChatMessage.is_read == False,  # noqa: E712
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def supplier_threads(self, supplier: Supplier) -> list[dict]:
        """One entry per workshop that has chatted with the supplier, newest first."""
        latest = (
            select(
                ChatMessage.workshop_id.label("workshop_id"),
                func.max(ChatMessage.created_at).label("last_at"),
            )
            .where(ChatMessage.order_id.is_(None), ChatMessage.supplier_id == supplier.id)
            .group_by(ChatMessage.workshop_id)
            .subquery()
        )
        rows = (
            await self.db.execute(
                select(ChatMessage, Workshop.name)
                .join(
                    latest,
                    and_(
                        ChatMessage.workshop_id == latest.c.workshop_id,
                        ChatMessage.created_at == latest.c.last_at,
                    ),
                )
                .join(Workshop, Workshop.id == ChatMessage.workshop_id)
                .where(ChatMessage.order_id.is_(None), ChatMessage.supplier_id == supplier.id)
                .order_by(ChatMessage.created_at.desc())
            )
        ).all()

        unread_rows = (
            await self.db.execute(
                select(ChatMessage.workshop_id, func.count())
                .where(
                    ChatMessage.order_id.is_(None),
                    ChatMessage.supplier_id == supplier.id,
                    ChatMessage.receiver_id == supplier.user_id,
                    ChatMessage.is_read == False,  # noqa: E712
                )
                .group_by(ChatMessage.workshop_id)
            )
        ).all()
        unread = {workshop_id: count for workshop_id, count in unread_rows}

        threads = []
        seen = set()
        for message, workshop_name in rows:
            if message.workshop_id in seen:
                continue
            seen.add(message.workshop_id)
            threads.append(
                {
                    "workshop_id": message.workshop_id,
                    "workshop_name": workshop_name,
                    "last_message": message.message,
                    "last_message_at": message.created_at,
                    "unread_count": unread.get(message.workshop_id, 0),
                }
            )
        return threads

    async def _deliver(self, chat: ChatMessage, room: str, sender: User) -> ChatMessage:
        self.db.add(chat)
        await self.db.flush()

        await emit_chat_message(room, chat)
        await self.notifications.notify_chat_message(chat.receiver_id, sender.full_name, chat.message)

        logger.info(
            "chat_message_sent",
            message_id=str(chat.id),
            room=room,
            sender_id=str(sender.id),
        )
        return chat

    async def _workshop_user_id(self, workshop_id) -> Optional[uuid.UUID]:
        result = await self.db.execute(select(Workshop.user_id).where(Workshop.id == workshop_id))
        return result.scalar_one_or_none()

    async def _supplier_user_id(self, supplier_id) -> Optional[uuid.UUID]:
        result = await self.db.execute(select(Supplier.user_id).where(Supplier.id == supplier_id))
        return result.scalar_one_or_none()
