"""Tests for the WebSocket room hub."""
from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocketDisconnect

from garagehub.realtime.hub import RealtimeHub, is_joinable


def make_socket():
    websocket = MagicMock()
    websocket.send_json = AsyncMock()
    return websocket


class TestJoinableRooms:
    """Which rooms a client may join itself."""

    @pytest.mark.parametrize(
        "room",
        [
            f"workshop.{uuid.uuid4()}",
            f"supplier.{uuid.uuid4()}",
            f"shop:{uuid.uuid4()}",
            f"order.{uuid.uuid4()}",
        ],
    )
    def test_public_rooms(self, room):
        assert is_joinable(room)

    @pytest.mark.parametrize(
        "room",
        [
            f"wallet:{uuid.uuid4()}",
            f"user.{uuid.uuid4()}",
            f"customer:{uuid.uuid4()}",
            f"chat:order.{uuid.uuid4()}",
            "",
            "lobby",
        ],
    )
    def test_private_or_unknown_rooms(self, room):
        assert not is_joinable(room)


class TestRealtimeHub:
    """Fan-out of events to room members."""

    @pytest.mark.asyncio
    async def test_emit_reaches_room_members_only(self):
        hub = RealtimeHub()
        inside, outside = make_socket(), make_socket()
        hub.join(inside, "order.1")
        hub.join(outside, "order.2")

        delivered = await hub.emit("order.1", "supplierOrder.updated", {"status": "accepted"})

        assert delivered == 1
        payload = inside.send_json.call_args.args[0]
        assert payload == {
            "event": "supplierOrder.updated",
            "room": "order.1",
            "data": {"status": "accepted"},
        }
        outside.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_emit_to_empty_room(self):
        assert await RealtimeHub().emit("order.nobody", "x") == 0

    @pytest.mark.asyncio
    async def test_failed_socket_is_dropped_everywhere(self):
        hub = RealtimeHub()
        broken = make_socket()
        broken.send_json.side_effect = WebSocketDisconnect()
        hub.join(broken, "order.1")
        hub.join(broken, "shop:1")

        assert await hub.emit("order.1", "x") == 0
        assert hub.members("order.1") == 0
        assert hub.members("shop:1") == 0

    @pytest.mark.asyncio
    async def test_uuid_payload_is_json_safe(self):
        hub = RealtimeHub()
        websocket = make_socket()
        hub.join(websocket, "order.1")
        order_id = uuid.uuid4()

        await hub.emit("order.1", "delivery.updated", {"order_id": order_id})

        assert websocket.send_json.call_args.args[0]["data"] == {"order_id": str(order_id)}

    def test_leave_removes_empty_room(self):
        hub = RealtimeHub()
        websocket = make_socket()
        hub.join(websocket, "workshop.1")
        hub.leave(websocket, "workshop.1")
        hub.leave(websocket, "workshop.1")
        assert hub.members("workshop.1") == 0
