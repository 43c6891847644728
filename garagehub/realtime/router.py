"""WebSocket endpoint for realtime room subscriptions."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from garagehub.auth.dependencies import load_session_user
from garagehub.database import get_session_factory
from garagehub.realtime.access import (
    can_follow_order,
    can_join,
    can_join_shop_chat,
    is_assigned_runner,
)
from garagehub.realtime.hub import (
    emit_delivery_location,
    hub,
    is_joinable,
    order_chat_room,
    shop_chat_room,
)
from garagehub.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(tags=["realtime"])


def _error(detail: str) -> dict:
    return {"event": "error", "data": {"detail": detail}}


def _joined(room: str) -> dict:
    return {"event": "joined", "data": {"room": room}}


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: str = Query(""),
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    redis: Redis = Depends(get_redis),
):
    """Authenticate with a session token, then relay room events.

    Frames are JSON objects: {"event": <name>, "data": {...}}. Database
    sessions are opened per lookup and never held across frames.
    """
    async with sessions() as db:
        user = await load_session_user(db, redis, token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    user_id = str(user.id)
    hub.join(websocket, f"user.{user_id}")
    hub.join(websocket, f"customer:{user_id}")
    logger.info("realtime_connected", user_id=user_id, role=user.role)

    try:
        while True:
            frame = await websocket.receive_json()
            if not isinstance(frame, dict):
                continue
            reply = await _handle_frame(
                websocket, sessions, user, frame.get("event"), frame.get("data") or {}
            )
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        logger.info("realtime_disconnected", user_id=user_id)
    finally:
        hub.disconnect(websocket)


async def _join_checked(websocket: WebSocket, sessions, user, room: str) -> dict:
    if not is_joinable(room):
        logger.warning("realtime_join_blocked", user_id=str(user.id), room=room)
        return _error(f"Room '{room}' cannot be joined")
    async with sessions() as db:
        allowed = await can_join(db, user, room)
    if not allowed:
        logger.warning("realtime_join_denied", user_id=str(user.id), room=room)
        return _error(f"Not allowed to join '{room}'")
    hub.join(websocket, room)
    return _joined(room)


async def _chat_room_for(sessions, user, data: dict):
    """Resolve a chat frame to its room, or None when the caller is not a party."""
    order_id = data.get("order_id")
    async with sessions() as db:
        if order_id:
            if await can_follow_order(db, user, order_id):
                return order_chat_room(order_id)
            return None
        supplier_id, workshop_id = data.get("supplier_id"), data.get("workshop_id")
        if await can_join_shop_chat(db, user, supplier_id, workshop_id):
            return shop_chat_room(supplier_id, workshop_id)
    return None


async def _handle_frame(websocket: WebSocket, sessions, user, event, data: dict):
    if event == "join_room":
        return await _join_checked(websocket, sessions, user, str(data.get("room", "")))

    if event == "leave_room":
        room = str(data.get("room", ""))
        hub.leave(websocket, room)
        return {"event": "left", "data": {"room": room}}

    if event == "track.order":
        return await _join_checked(websocket, sessions, user, f"order.{data.get('order_id')}")

    if event == "untrack.order":
        hub.leave(websocket, f"order.{data.get('order_id')}")
        return None

    if event == "join.workshop":
        return await _join_checked(websocket, sessions, user, f"workshop.{data.get('workshop_id')}")

    if event == "chat.join":
        room = await _chat_room_for(sessions, user, data)
        if room is None:
            logger.warning("realtime_chat_denied", user_id=str(user.id))
            return _error("Not a participant in this conversation")
        hub.join(websocket, room)
        return _joined(room)

    if event == "chat.leave":
        if data.get("order_id"):
            room = order_chat_room(data["order_id"])
        else:
            room = shop_chat_room(data.get("supplier_id"), data.get("workshop_id"))
        hub.leave(websocket, room)
        return {"event": "left", "data": {"room": room}}

    if event == "join_wallet_room":
        # Only ever the caller's own wallet
        room = f"wallet:{user.id}"
        hub.join(websocket, room)
        return _joined(room)

    if event == "runner.location":
        order_id = data.get("order_id")
        async with sessions() as db:
            assigned = user.role == "runner" and await is_assigned_runner(db, user, order_id)
        if not assigned:
            return _error("Only the assigned runner shares location")
        await emit_delivery_location(order_id, data.get("latitude"), data.get("longitude"))
        return None

    return _error(f"Unknown event '{event}'")
