"""Tests for runner delivery offers and deliveries."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from garagehub.models import DeliveryOffer
from garagehub.models.base import utcnow


async def runner_order_in_preparation(client, workshop, supplier, part, headers_for):
    """Runner-delivered order the supplier has accepted and started preparing."""
    workshop_headers = await headers_for(workshop)
    await client.post(
        "/api/v1/cart",
        json={"part_id": str(part.id), "quantity": 2, "delivery_type": "runner"},
        headers=workshop_headers,
    )
    order = (
        await client.post("/api/v1/cart/checkout", json={"payment_method": "wallet"}, headers=workshop_headers)
    ).json()[0]

    supplier_headers = await headers_for(supplier)
    await client.post(f"/api/v1/orders/{order['id']}/accept", headers=supplier_headers)
    preparing = await client.patch(
        f"/api/v1/orders/{order['id']}/status", json={"status": "preparing"}, headers=supplier_headers
    )
    assert preparing.status_code == 200, preparing.text
    return preparing.json()


class TestDeliveryOffers:
    """Broadcast to nearby runners, first accept wins."""

    @pytest.mark.asyncio
    async def test_runner_delivery_is_charged(self, client, workshop, supplier, part, runner, headers_for):
        order = await runner_order_in_preparation(client, workshop, supplier, part, headers_for)

        assert order["delivery_type"] == "runner"
        assert Decimal(order["delivery_charge"]) > Decimal("6.00")
        assert Decimal(order["total_amount"]) == Decimal(order["items_total"]) + Decimal(order["delivery_charge"])
        assert Decimal(order["distance_km"]) > 0

    @pytest.mark.asyncio
    async def test_nearby_runner_gets_offer(self, client, workshop, supplier, part, runner, headers_for):
        order = await runner_order_in_preparation(client, workshop, supplier, part, headers_for)

        offers = (await client.get("/api/v1/delivery-offers", headers=await headers_for(runner))).json()
        assert len(offers) == 1
        assert offers[0]["order_id"] == order["id"]
        assert offers[0]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_far_runner_gets_nothing(self, client, workshop, supplier, part, make_user, headers_for):
        # Johor Bahru, far outside the offer radius
        far_runner = await make_user(
            "runner", latitude=Decimal("1.4927000"), longitude=Decimal("103.7414000")
        )
        await runner_order_in_preparation(client, workshop, supplier, part, headers_for)

        offers = (await client.get("/api/v1/delivery-offers", headers=await headers_for(far_runner))).json()
        assert offers == []

    @pytest.mark.asyncio
    async def test_first_accept_wins(self, client, workshop, supplier, part, runner, make_user, headers_for):
        second = await make_user("runner", latitude=Decimal("3.0800000"), longitude=Decimal("101.5300000"))
        order = await runner_order_in_preparation(client, workshop, supplier, part, headers_for)

        first_headers = await headers_for(runner)
        second_headers = await headers_for(second)
        first_offer = (await client.get("/api/v1/delivery-offers", headers=first_headers)).json()[0]
        second_offer = (await client.get("/api/v1/delivery-offers", headers=second_headers)).json()[0]

        accepted = await client.post(
            f"/api/v1/delivery-offers/{first_offer['id']}/accept", headers=first_headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "pending"

        late = await client.post(
            f"/api/v1/delivery-offers/{second_offer['id']}/accept", headers=second_headers
        )
        assert late.status_code == 409

        current = (await client.get(f"/api/v1/orders/{order['id']}", headers=first_headers)).json()
        assert current["status"] == "assigned_runner"
        assert current["runner_id"] == str(runner.id)

    @pytest.mark.asyncio
    async def test_expired_offer(self, client, db, workshop, supplier, part, runner, headers_for):
        await runner_order_in_preparation(client, workshop, supplier, part, headers_for)
        headers = await headers_for(runner)
        offer = (await client.get("/api/v1/delivery-offers", headers=headers)).json()[0]

        await db.execute(
            update(DeliveryOffer)
            .where(DeliveryOffer.runner_id == runner.id)
            .values(expires_at=utcnow() - timedelta(seconds=1))
        )
        await db.commit()

        response = await client.post(f"/api/v1/delivery-offers/{offer['id']}/accept", headers=headers)
        assert response.status_code == 409
        assert "expired" in response.json()["detail"]

        offers = (await client.get("/api/v1/delivery-offers", headers=headers)).json()
        assert offers[0]["status"] == "expired"

    @pytest.mark.asyncio
    async def test_reject_offer(self, client, workshop, supplier, part, runner, headers_for):
        await runner_order_in_preparation(client, workshop, supplier, part, headers_for)
        headers = await headers_for(runner)
        offer = (await client.get("/api/v1/delivery-offers", headers=headers)).json()[0]

        response = await client.post(f"/api/v1/delivery-offers/{offer['id']}/reject", headers=headers)
        assert response.json()["status"] == "rejected"

        again = await client.post(f"/api/v1/delivery-offers/{offer['id']}/accept", headers=headers)
        assert again.status_code == 409


class TestDeliveries:
    """Runner progress drives the order status and pays out on delivery."""

    @pytest.mark.asyncio
    async def test_full_delivery_pays_supplier_and_runner(
        self, client, workshop, supplier, part, runner, headers_for
    ):
        order = await runner_order_in_preparation(client, workshop, supplier, part, headers_for)
        runner_headers = await headers_for(runner)
        offer = (await client.get("/api/v1/delivery-offers", headers=runner_headers)).json()[0]
        delivery = (
            await client.post(f"/api/v1/delivery-offers/{offer['id']}/accept", headers=runner_headers)
        ).json()

        for status in ("picked_up", "en_route"):
            response = await client.patch(
                f"/api/v1/deliveries/{delivery['id']}/status", json={"status": status}, headers=runner_headers
            )
            assert response.status_code == 200, response.text

        moving = (await client.get(f"/api/v1/orders/{order['id']}", headers=runner_headers)).json()
        assert moving["status"] == "delivering"

        location = await client.post(
            f"/api/v1/deliveries/{delivery['id']}/location",
            json={"latitude": "3.0900000", "longitude": "101.5600000"},
            headers=runner_headers,
        )
        assert location.status_code == 200
        assert Decimal(location.json()["current_lat"]) == Decimal("3.09")

        done = await client.patch(
            f"/api/v1/deliveries/{delivery['id']}/status", json={"status": "delivered"}, headers=runner_headers
        )
        assert done.status_code == 200
        assert done.json()["delivered_at"] is not None

        final = (await client.get(f"/api/v1/orders/{order['id']}", headers=runner_headers)).json()
        assert final["status"] == "delivered"

        runner_wallet = (await client.get("/api/v1/wallet", headers=runner_headers)).json()
        assert Decimal(runner_wallet["balance"]) == Decimal(order["delivery_charge"])

        supplier_wallet = (await client.get("/api/v1/wallet", headers=await headers_for(supplier))).json()
        assert Decimal(supplier_wallet["balance"]) == Decimal("190.00")

    @pytest.mark.asyncio
    async def test_cannot_skip_pickup(self, client, workshop, supplier, part, runner, headers_for):
        await runner_order_in_preparation(client, workshop, supplier, part, headers_for)
        runner_headers = await headers_for(runner)
        offer = (await client.get("/api/v1/delivery-offers", headers=runner_headers)).json()[0]
        delivery = (
            await client.post(f"/api/v1/delivery-offers/{offer['id']}/accept", headers=runner_headers)
        ).json()

        response = await client.patch(
            f"/api/v1/deliveries/{delivery['id']}/status", json={"status": "delivered"}, headers=runner_headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_available_orders_for_runners(self, client, workshop, supplier, part, runner, headers_for):
        order = await runner_order_in_preparation(client, workshop, supplier, part, headers_for)
        available = (await client.get("/api/v1/orders/available", headers=await headers_for(runner))).json()
        assert [o["id"] for o in available] == [order["id"]]
