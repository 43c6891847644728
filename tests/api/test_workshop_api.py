"""Tests for staff attendance, inventory, reviews and invoices."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

# Same coordinates as the workshop fixture
AT_WORKSHOP = {"latitude": "3.1073000", "longitude": "101.6067000"}
# About 1.5 km north, well outside the default 100 m geofence
DOWN_THE_ROAD = {"latitude": "3.1210000", "longitude": "101.6067000"}
EARLY_MORNING = datetime(2026, 10, 19, 0, 45, tzinfo=timezone.utc)
EARLY_EVENING = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


class TestStaffAttendance:
    """Geofenced clock-in and clock-out."""

    @pytest.mark.asyncio
    async def test_clock_in_and_out(self, client, staff_member, headers_for):
        headers = await headers_for(staff_member)

        # 08:45 in Kuala Lumpur
        with patch("garagehub.repositories.staff.utcnow", return_value=EARLY_MORNING):
            clocked_in = await client.post("/api/v1/staff/me/clock-in", json=AT_WORKSHOP, headers=headers)
        assert clocked_in.status_code == 201, clocked_in.text
        body = clocked_in.json()
        assert body["distance_m"] == 0.0
        assert body["status"] == "present"
        assert body["attendance_date"] == "2026-10-19"
        assert body["verification_method"] == "gps"

        with patch("garagehub.repositories.staff.utcnow", return_value=EARLY_EVENING):
            clocked_out = await client.post("/api/v1/staff/me/clock-out", headers=headers)
        assert clocked_out.status_code == 200
        assert clocked_out.json()["clock_out"] is not None
        assert Decimal(clocked_out.json()["hours_worked"]) == Decimal("9.25")

        history = (await client.get("/api/v1/staff/me/attendance", headers=headers)).json()
        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_outside_geofence(self, client, staff_member, headers_for):
        response = await client.post(
            "/api/v1/staff/me/clock-in", json=DOWN_THE_ROAD, headers=await headers_for(staff_member)
        )
        assert response.status_code == 400
        assert "geofence" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_wider_geofence_allows_clock_in(self, client, workshop, staff_member, headers_for):
        await client.patch(
            "/api/v1/workshops/me", json={"geofence_radius": 2000}, headers=await headers_for(workshop)
        )
        response = await client.post(
            "/api/v1/staff/me/clock-in", json=DOWN_THE_ROAD, headers=await headers_for(staff_member)
        )
        assert response.status_code == 201
        assert 1000 < response.json()["distance_m"] < 2000

    @pytest.mark.asyncio
    async def test_clock_in_twice(self, client, staff_member, headers_for):
        headers = await headers_for(staff_member)
        await client.post("/api/v1/staff/me/clock-in", json=AT_WORKSHOP, headers=headers)
        response = await client.post("/api/v1/staff/me/clock-in", json=AT_WORKSHOP, headers=headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_clock_out_without_clock_in(self, client, staff_member, headers_for):
        response = await client.post("/api/v1/staff/me/clock-out", headers=await headers_for(staff_member))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_owner_sees_attendance(self, client, workshop, staff_member, headers_for):
        await client.post(
            "/api/v1/staff/me/clock-in", json=AT_WORKSHOP, headers=await headers_for(staff_member)
        )
        records = (await client.get("/api/v1/staff/attendance", headers=await headers_for(workshop))).json()
        assert [r["staff_id"] for r in records] == [str(staff_member.id)]

    @pytest.mark.asyncio
    async def test_owner_manages_staff(self, client, workshop, headers_for):
        headers = await headers_for(workshop)
        created = await client.post(
            "/api/v1/staff",
            json={"name": "Siti Aminah", "role": "service advisor", "basic_salary": "2500.00"},
            headers=headers,
        )
        assert created.status_code == 201
        staff_id = created.json()["id"]

        removed = await client.delete(f"/api/v1/staff/{staff_id}", headers=headers)
        assert removed.json()["is_active"] is False

        active = (await client.get("/api/v1/staff", headers=headers)).json()
        assert staff_id not in [s["id"] for s in active]


class TestInventory:
    """Workshop stock of marketplace parts."""

    @pytest.mark.asyncio
    async def test_upsert_and_adjust(self, client, workshop, part, headers_for):
        headers = await headers_for(workshop)
        item = await client.put(
            "/api/v1/inventory",
            json={"part_id": str(part.id), "quantity": 6, "minimum_stock": 5, "location": "Rack A"},
            headers=headers,
        )
        assert item.status_code == 200
        assert item.json()["low_stock"] is False
        assert item.json()["sku"] == "TOY-BP-001"

        adjusted = await client.post(
            f"/api/v1/inventory/{item.json()['id']}/adjust", json={"delta": -2}, headers=headers
        )
        assert adjusted.json()["quantity"] == 4
        assert adjusted.json()["low_stock"] is True

        low = (await client.get("/api/v1/inventory?low_stock=true", headers=headers)).json()
        assert [i["id"] for i in low] == [item.json()["id"]]

    @pytest.mark.asyncio
    async def test_cannot_go_negative(self, client, workshop, part, headers_for):
        headers = await headers_for(workshop)
        item = (
            await client.put("/api/v1/inventory", json={"part_id": str(part.id), "quantity": 1}, headers=headers)
        ).json()
        response = await client.post(
            f"/api/v1/inventory/{item['id']}/adjust", json={"delta": -5}, headers=headers
        )
        assert response.status_code == 400


class TestReviews:
    """One review per user and target, averaged onto the profile."""

    @pytest.mark.asyncio
    async def test_average_and_duplicate(self, client, customer, make_user, workshop, headers_for):
        other = await make_user("customer")
        target = {"target_type": "workshop", "target_id": str(workshop.id)}

        first = await client.post(
            "/api/v1/reviews",
            json={**target, "rating": 5, "comment": "Quick and honest service"},
            headers=await headers_for(customer),
        )
        assert first.status_code == 201
        await client.post("/api/v1/reviews", json={**target, "rating": 4}, headers=await headers_for(other))

        duplicate = await client.post(
            "/api/v1/reviews", json={**target, "rating": 1}, headers=await headers_for(customer)
        )
        assert duplicate.status_code == 409

        listing = (await client.get(f"/api/v1/reviews/workshop/{workshop.id}")).json()
        assert listing["count"] == 2
        assert listing["average"] == "4.50"

        profile = (await client.get(f"/api/v1/workshops/{workshop.id}")).json()
        assert Decimal(profile["rating"]) == Decimal("4.50")

    @pytest.mark.asyncio
    async def test_unknown_target(self, client, customer, supplier, headers_for):
        response = await client.post(
            "/api/v1/reviews",
            json={"target_type": "product", "target_id": str(supplier.id), "rating": 3},
            headers=await headers_for(customer),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rating_range(self, client, customer, workshop, headers_for):
        response = await client.post(
            "/api/v1/reviews",
            json={"target_type": "workshop", "target_id": str(workshop.id), "rating": 6},
            headers=await headers_for(customer),
        )
        assert response.status_code == 422


class TestInvoices:
    """Printable HTML invoices."""

    @pytest.mark.asyncio
    async def test_job_invoice(self, client, workshop, customer, headers_for):
        job = (
            await client.post(
                "/api/v1/jobs",
                json={
                    "customer_id": str(customer.id),
                    "vehicle_model": "Toyota Vios",
                    "vehicle_plate": "BKL 8821",
                    "service_type": "Major service",
                    "estimated_cost": "1234.50",
                },
                headers=await headers_for(workshop),
            )
        ).json()

        response = await client.get(f"/api/v1/invoices/jobs/{job['id']}", headers=await headers_for(customer))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert f"INV-{job['id'][:8].upper()}" in response.text
        assert "RM 1,234.50" in response.text
        assert "BKL 8821" in response.text

    @pytest.mark.asyncio
    async def test_job_invoice_private(self, client, workshop, customer, make_user, headers_for):
        job = (
            await client.post(
                "/api/v1/jobs",
                json={"customer_id": str(customer.id), "vehicle_model": "Myvi", "service_type": "Oil change"},
                headers=await headers_for(workshop),
            )
        ).json()
        stranger = await make_user("customer")
        response = await client.get(f"/api/v1/invoices/jobs/{job['id']}", headers=await headers_for(stranger))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_order_invoice_lists_parts(self, client, workshop, supplier, part, headers_for):
        headers = await headers_for(workshop)
        order = (
            await client.post(
                "/api/v1/orders",
                json={"supplier_id": str(supplier.id), "items": [{"part_id": str(part.id), "quantity": 3}]},
                headers=headers,
            )
        ).json()

        response = await client.get(f"/api/v1/invoices/orders/{order['id']}", headers=await headers_for(supplier))
        assert response.status_code == 200
        assert "Front Brake Pad Set" in response.text
        assert "RM 300.00" in response.text


class TestMarketplace:
    """Catalogue browsing and supplier products."""

    @pytest.mark.asyncio
    async def test_new_parts_get_sequential_codes(self, client, supplier, headers_for):
        headers = await headers_for(supplier)
        codes = []
        for sku in ("HON-SA-003", "PRO-BT-004"):
            response = await client.post(
                "/api/v1/parts",
                json={"sku": sku, "name": f"Part {sku}", "price": "45.00", "stock_quantity": 3},
                headers=headers,
            )
            assert response.status_code == 201, response.text
            codes.append(response.json()["garagehub_code"])
        assert codes == ["#001", "#002"]

    @pytest.mark.asyncio
    async def test_duplicate_sku(self, client, supplier, part, headers_for):
        response = await client.post(
            "/api/v1/parts",
            json={"sku": part.sku, "name": "Copy", "price": "10.00"},
            headers=await headers_for(supplier),
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_search_products(self, client, part):
        found = (await client.get("/api/v1/marketplace/products", params={"q": "brake"})).json()
        assert found["total"] == 1
        assert found["products"][0]["id"] == str(part.id)

        missing = (await client.get("/api/v1/marketplace/products", params={"brand": "Proton"})).json()
        assert missing["total"] == 0

    @pytest.mark.asyncio
    async def test_supplier_detail(self, client, supplier, part):
        detail = (await client.get(f"/api/v1/marketplace/suppliers/{supplier.id}")).json()
        assert detail["product_count"] == 1
        assert detail["categories"] == ["Brakes"]

    @pytest.mark.asyncio
    async def test_quote(self, client, workshop, supplier, headers_for):
        quote = (
            await client.get(
                "/api/v1/marketplace/quote",
                params={"supplier_id": str(supplier.id), "item_count": 2},
                headers=await headers_for(workshop),
            )
        ).json()
        assert quote["runner_available"] is True
        assert quote["distance_km"] > 5
        assert Decimal(quote["delivery_charge"]) > Decimal("6.00")

    @pytest.mark.asyncio
    async def test_other_supplier_cannot_edit(self, client, part, make_user, db, headers_for):
        from garagehub.models import Supplier

        user = await make_user("supplier")
        rival = Supplier(
            user_id=user.id,
            name="Rival Parts",
            address="1 Jalan Ipoh",
            phone="0311112222",
            supplier_type="Halfcut",
            delivery_method="pickup",
        )
        db.add(rival)
        await db.commit()

        response = await client.patch(
            f"/api/v1/parts/{part.id}", json={"price": "1.00"}, headers=await headers_for(user)
        )
        assert response.status_code == 403
