"""Tests for wallet top-ups, chat, notifications and the admin revenue view."""
from __future__ import annotations

from decimal import Decimal

import pytest

from garagehub.wallet.ledger import sign_reference


class TestWalletTopup:
    """Provider-confirmed top-ups."""

    @pytest.mark.asyncio
    async def test_confirm_credits_once(self, client, customer, headers_for):
        headers = await headers_for(customer)
        started = await client.post("/api/v1/wallet/topup", json={"amount": "50.00"}, headers=headers)
        assert started.status_code == 201
        assert started.json()["status"] == "pending"
        reference = started.json()["reference"]

        # Pending top-ups do not move the balance
        wallet = (await client.get("/api/v1/wallet", headers=headers)).json()
        assert Decimal(wallet["balance"]) == Decimal("200.00")

        signature = {"X-Payment-Signature": sign_reference(reference)}
        for _ in range(2):
            confirmed = await client.post(
                "/api/v1/wallet/topup/confirm", json={"reference": reference}, headers=signature
            )
            assert confirmed.status_code == 200
            assert confirmed.json()["status"] == "completed"

        wallet = (await client.get("/api/v1/wallet", headers=headers)).json()
        assert Decimal(wallet["balance"]) == Decimal("250.00")

        history = (await client.get("/api/v1/wallet/transactions", headers=headers)).json()
        assert [t["transaction_type"] for t in history] == ["topup"]

    @pytest.mark.asyncio
    async def test_bad_signature(self, client, customer, headers_for):
        started = await client.post(
            "/api/v1/wallet/topup", json={"amount": "20.00"}, headers=await headers_for(customer)
        )
        response = await client.post(
            "/api/v1/wallet/topup/confirm",
            json={"reference": started.json()["reference"]},
            headers={"X-Payment-Signature": "0" * 64},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_below_minimum(self, client, customer, headers_for):
        response = await client.post(
            "/api/v1/wallet/topup", json={"amount": "0.50"}, headers=await headers_for(customer)
        )
        assert response.status_code == 400


class TestOrderChat:
    """Messages on an order thread."""

    @pytest.mark.asyncio
    async def test_workshop_and_supplier_talk(self, client, workshop, supplier, part, headers_for):
        workshop_headers = await headers_for(workshop)
        supplier_headers = await headers_for(supplier)
        order = (
            await client.post(
                "/api/v1/orders",
                json={"supplier_id": str(supplier.id), "items": [{"part_id": str(part.id), "quantity": 1}]},
                headers=workshop_headers,
            )
        ).json()

        sent = await client.post(
            f"/api/v1/chat/orders/{order['id']}",
            json={"message": "Can you include the wear sensor?"},
            headers=workshop_headers,
        )
        assert sent.status_code == 201
        assert sent.json()["receiver_id"] == str(supplier.user_id)

        thread = (await client.get(f"/api/v1/chat/orders/{order['id']}", headers=supplier_headers)).json()
        assert [m["message"] for m in thread] == ["Can you include the wear sensor?"]
        assert thread[0]["is_read"] is False

        read = await client.post(f"/api/v1/chat/orders/{order['id']}/read", headers=supplier_headers)
        assert read.json()["updated"] == 1

        notifications = (await client.get("/api/v1/notifications", headers=supplier_headers)).json()
        assert "chat_message" in [n["type"] for n in notifications]

    @pytest.mark.asyncio
    async def test_outsider_cannot_read_thread(self, client, workshop, supplier, part, customer, headers_for):
        order = (
            await client.post(
                "/api/v1/orders",
                json={"supplier_id": str(supplier.id), "items": [{"part_id": str(part.id), "quantity": 1}]},
                headers=await headers_for(workshop),
            )
        ).json()
        response = await client.get(f"/api/v1/chat/orders/{order['id']}", headers=await headers_for(customer))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_marketplace_room_thread(self, client, workshop, supplier, headers_for):
        await client.post(
            f"/api/v1/chat/rooms/{supplier.id}/{workshop.id}",
            json={"message": "Do you have Myvi rear shocks?"},
            headers=await headers_for(workshop),
        )

        threads = (await client.get("/api/v1/chat/threads", headers=await headers_for(supplier))).json()
        assert len(threads) == 1
        assert threads[0]["workshop_name"] == "Kumar Auto Service"
        assert threads[0]["unread_count"] == 1


class TestNotifications:
    """Per-user notification inbox."""

    @pytest.mark.asyncio
    async def test_read_all_and_delete(self, client, customer, workshop, headers_for):
        # Each booking notifies the workshop owner
        for day in ("2026-11-02", "2026-11-03"):
            await client.post(
                "/api/v1/bookings",
                json={
                    "workshop_id": str(workshop.id),
                    "vehicle": "Perodua Axia",
                    "service_type": "Aircond",
                    "preferred_date": f"{day}T10:00:00+08:00",
                },
                headers=await headers_for(customer),
            )
        headers = await headers_for(workshop)
        assert (await client.get("/api/v1/notifications/unread-count", headers=headers)).json()["count"] == 2

        read = await client.post("/api/v1/notifications/read-all", headers=headers)
        assert read.json()["updated"] == 2
        assert (await client.get("/api/v1/notifications/unread-count", headers=headers)).json()["count"] == 0

        first = (await client.get("/api/v1/notifications", headers=headers)).json()[0]
        deleted = await client.delete(f"/api/v1/notifications/{first['id']}", headers=headers)
        assert deleted.status_code == 204
        assert len((await client.get("/api/v1/notifications", headers=headers)).json()) == 1

    @pytest.mark.asyncio
    async def test_cannot_touch_others_notifications(self, client, customer, workshop, make_user, headers_for):
        await client.post(
            "/api/v1/bookings",
            json={
                "workshop_id": str(workshop.id),
                "vehicle": "Perodua Axia",
                "service_type": "Aircond",
                "preferred_date": "2026-11-02T10:00:00+08:00",
            },
            headers=await headers_for(customer),
        )
        first = (await client.get("/api/v1/notifications", headers=await headers_for(workshop))).json()[0]

        stranger = await make_user("customer")
        response = await client.post(
            f"/api/v1/notifications/{first['id']}/read", headers=await headers_for(stranger)
        )
        assert response.status_code == 404


class TestAdmin:
    """Approval queue and revenue."""

    @pytest.mark.asyncio
    async def test_pending_queue(self, client, admin, make_user, headers_for):
        waiting = await make_user("runner", approved=False)
        pending = (await client.get("/api/v1/admin/users/pending", headers=await headers_for(admin))).json()
        assert [u["id"] for u in pending] == [str(waiting.id)]

    @pytest.mark.asyncio
    async def test_revenue_after_pickup(self, client, admin, workshop, supplier, part, headers_for):
        workshop_headers = await headers_for(workshop)
        supplier_headers = await headers_for(supplier)
        order = (
            await client.post(
                "/api/v1/orders",
                json={"supplier_id": str(supplier.id), "items": [{"part_id": str(part.id), "quantity": 2}]},
                headers=workshop_headers,
            )
        ).json()
        await client.post(f"/api/v1/orders/{order['id']}/accept", headers=supplier_headers)

        admin_headers = await headers_for(admin)
        before = (await client.get("/api/v1/admin/revenue", headers=admin_headers)).json()
        assert before["held_in_escrow"] == "200.00"
        assert before["platform_revenue"] == "0.00"

        qr = (await client.get(f"/api/v1/orders/{order['id']}/qr", headers=workshop_headers)).json()
        await client.post("/api/v1/orders/scan-qr", json={"qr_token": qr["qr_token"]}, headers=supplier_headers)

        after = (await client.get("/api/v1/admin/revenue", headers=admin_headers)).json()
        assert after["platform_revenue"] == "10.00"
        assert after["held_in_escrow"] == "0.00"
        assert after["orders_by_status"] == {"delivered": 1}
