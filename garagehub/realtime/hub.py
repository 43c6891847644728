"""In-process room hub for pushing cache-invalidation events over WebSockets.

Events are fire-and-forget: no persistence, ordering or redelivery. A socket
that fails to receive is dropped from every room it had joined.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

logger = structlog.get_logger()

# Rooms a client may ask for via "join_room"; all but shop rooms
# additionally require the caller to be a participant
JOINABLE_PREFIXES = ("workshop.", "supplier.", "shop:", "order.")

# Personal rooms, joined only by the server on the user's behalf
PRIVATE_PREFIXES = ("wallet:", "user.", "customer:")

# Chat rooms carry message text and are joined only through "chat.join"
CHAT_PREFIX = "chat:"


def is_joinable(room: str) -> bool:
    if not room or room.startswith(PRIVATE_PREFIXES) or room.startswith(CHAT_PREFIX):
        return False
    return room.startswith(JOINABLE_PREFIXES)


def order_chat_room(order_id) -> str:
    return f"{CHAT_PREFIX}order.{order_id}"


def shop_chat_room(supplier_id, workshop_id) -> str:
    return f"{CHAT_PREFIX}shop.{supplier_id}.{workshop_id}"


class RealtimeHub:
    """Tracks which sockets sit in which rooms and fans events out."""

    def __init__(self):
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)

    def join(self, websocket: WebSocket, room: str) -> None:
        self._rooms[room].add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[room]

    def disconnect(self, websocket: WebSocket) -> None:
        for room in list(self._rooms):
            self.leave(websocket, room)

    def members(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def emit(self, room: str, event: str, data: Any = None) -> int:
        """Send an event to every socket in a room.

        Returns:
            Number of sockets the event was delivered to
        """
        sockets = list(self._rooms.get(room, ()))
        if not sockets:
            return 0

        payload = {"event": event, "room": room, "data": jsonable_encoder(data)}
        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(payload)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug("realtime_socket_dropped", room=room, error=str(e))
                self.disconnect(websocket)

        logger.debug("realtime_emit", room=room, realtime_event=event, delivered=delivered)
        return delivered


hub = RealtimeHub()


# Event helpers used by the domain services

async def emit_order_updated(order) -> None:
    data = {"order_id": order.id, "status": order.status}
    await hub.emit(f"workshop.{order.workshop_id}", "supplierOrder.updated", data)
    await hub.emit(f"supplier.{order.supplier_id}", "supplierOrder.updated", data)
    await hub.emit(f"order.{order.id}", "supplierOrder.updated", data)


async def emit_delivery_updated(order_id, status: str, runner_id=None) -> None:
    data = {"order_id": order_id, "status": status, "runner_id": runner_id}
    await hub.emit(f"order.{order_id}", "delivery.updated", data)


async def emit_delivery_location(order_id, latitude, longitude) -> None:
    data = {"order_id": order_id, "latitude": latitude, "longitude": longitude}
    await hub.emit(f"order.{order_id}", "delivery.location", data)


async def emit_booking_updated(booking) -> None:
    data = {"booking_id": booking.id, "status": booking.status}
    await hub.emit(f"workshop.{booking.workshop_id}", "booking.updated", data)
    await hub.emit(f"customer:{booking.customer_id}", "booking.updated", data)


async def emit_job_update(job) -> None:
    data = {"job_id": job.id, "status": job.status, "progress": job.progress}
    await hub.emit(f"customer:{job.customer_id}", "job_update", data)
    await hub.emit(f"workshop.{job.workshop_id}", "workorder.updated", data)


async def emit_towing_updated(request) -> None:
    data = {"towing_id": request.id, "status": request.status}
    await hub.emit(f"customer:{request.customer_id}", "towing.updated", data)
    if request.towing_service_id:
        await hub.emit(f"user.{request.towing_service_id}", "towing.updated", data)


async def emit_wallet_balance(user_id, balance) -> None:
    await hub.emit(f"wallet:{user_id}", "wallet_balance_update", {"balance": balance})


async def emit_product_event(supplier_id, action: str, part_id) -> None:
    await hub.emit(f"shop:{supplier_id}", f"product.{action}", {"part_id": part_id})


async def emit_chat_message(room: str, message) -> None:
    data = {
        "id": message.id,
        "order_id": message.order_id,
        "supplier_id": message.supplier_id,
        "workshop_id": message.workshop_id,
        "sender_id": message.sender_id,
        "message": message.message,
        "created_at": message.created_at,
    }
    await hub.emit(room, "chat.new_message", data)


async def emit_notification(user_id, notification) -> None:
    data = {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
    }
    await hub.emit(f"user.{user_id}", "notification", data)
