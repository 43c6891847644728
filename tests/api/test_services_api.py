"""Tests for bookings, service jobs and towing."""
from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

PREFERRED_DATE = "2026-11-02T09:00:00+08:00"
PROPOSED_DATE = "2026-11-03T14:00:00+08:00"


async def create_booking(client, customer_headers, workshop):
    response = await client.post(
        "/api/v1/bookings",
        json={
            "workshop_id": str(workshop.id),
            "vehicle": "Perodua Myvi 2019",
            "service_type": "Brake service",
            "description": "Squealing when braking",
            "preferred_date": PREFERRED_DATE,
        },
        headers=customer_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestBookings:
    """Customer requests, workshop decides."""

    @pytest.mark.asyncio
    async def test_approve_opens_job(self, client, customer, workshop, headers_for):
        customer_headers = await headers_for(customer)
        booking = await create_booking(client, customer_headers, workshop)
        assert booking["status"] == "pending"

        response = await client.post(
            f"/api/v1/bookings/{booking['id']}/approve",
            json={"estimated_cost": "250.00", "vehicle_plate": "WXY 1234"},
            headers=await headers_for(workshop),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["booking"]["status"] == "approved"
        assert body["job"]["booking_id"] == booking["id"]
        assert body["job"]["vehicle_plate"] == "WXY 1234"
        assert Decimal(body["job"]["estimated_cost"]) == Decimal("250.00")

        jobs = (await client.get("/api/v1/my/jobs", headers=customer_headers)).json()
        assert [j["id"] for j in jobs] == [body["job"]["id"]]

    @pytest.mark.asyncio
    async def test_workshop_is_notified_of_new_booking(self, client, customer, workshop, headers_for):
        await create_booking(client, await headers_for(customer), workshop)

        count = (
            await client.get("/api/v1/notifications/unread-count", headers=await headers_for(workshop))
        ).json()
        assert count["count"] == 1

    @pytest.mark.asyncio
    async def test_proposal_accepted_by_customer(self, client, customer, workshop, headers_for):
        customer_headers = await headers_for(customer)
        booking = await create_booking(client, customer_headers, workshop)

        proposed = await client.post(
            f"/api/v1/bookings/{booking['id']}/propose",
            json={"proposed_date": PROPOSED_DATE, "reason": "Fully booked on Monday"},
            headers=await headers_for(workshop),
        )
        assert proposed.json()["status"] == "workshop_proposed"

        accepted = await client.post(
            f"/api/v1/bookings/{booking['id']}/accept-proposal", headers=customer_headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["booking"]["status"] == "approved"
        assert accepted.json()["job"]["status"] == "pending"

    @pytest.mark.asyncio
    async def test_workshop_cannot_approve_its_own_proposal(self, client, customer, workshop, headers_for):
        customer_headers = await headers_for(customer)
        workshop_headers = await headers_for(workshop)
        booking = await create_booking(client, customer_headers, workshop)
        await client.post(
            f"/api/v1/bookings/{booking['id']}/propose",
            json={"proposed_date": PROPOSED_DATE, "reason": "Fully booked on Monday"},
            headers=workshop_headers,
        )

        response = await client.post(
            f"/api/v1/bookings/{booking['id']}/approve", json={}, headers=workshop_headers
        )
        assert response.status_code == 409

        jobs = (await client.get("/api/v1/my/jobs", headers=customer_headers)).json()
        assert jobs == []
        still = await client.post(
            f"/api/v1/bookings/{booking['id']}/accept-proposal", headers=customer_headers
        )
        assert still.json()["booking"]["status"] == "approved"

    @pytest.mark.asyncio
    async def test_rejected_booking_cannot_be_cancelled(self, client, customer, workshop, headers_for):
        customer_headers = await headers_for(customer)
        booking = await create_booking(client, customer_headers, workshop)
        await client.post(f"/api/v1/bookings/{booking['id']}/reject", headers=await headers_for(workshop))

        response = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=customer_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_accept_without_proposal(self, client, customer, workshop, headers_for):
        customer_headers = await headers_for(customer)
        booking = await create_booking(client, customer_headers, workshop)

        response = await client.post(
            f"/api/v1/bookings/{booking['id']}/accept-proposal", headers=customer_headers
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_other_customer_cannot_cancel(self, client, customer, make_user, workshop, headers_for):
        booking = await create_booking(client, await headers_for(customer), workshop)
        stranger = await make_user("customer")

        response = await client.post(
            f"/api/v1/bookings/{booking['id']}/cancel", headers=await headers_for(stranger)
        )
        assert response.status_code == 403


class TestJobs:
    """Workshop job cards and customer tracking."""

    async def _job(self, client, workshop, customer, headers_for, **extra):
        response = await client.post(
            "/api/v1/jobs",
            json={
                "customer_id": str(customer.id),
                "vehicle_model": "Honda City 2017",
                "service_type": "Suspension",
                "estimated_cost": "400.00",
                **extra,
            },
            headers=await headers_for(workshop),
        )
        assert response.status_code == 201, response.text
        return response.json()

    @pytest.mark.asyncio
    async def test_lifecycle(self, client, workshop, customer, headers_for):
        job = await self._job(client, workshop, customer, headers_for)
        headers = await headers_for(workshop)

        started = await client.patch(
            f"/api/v1/jobs/{job['id']}/status", json={"status": "in_progress"}, headers=headers
        )
        assert started.json()["status"] == "in_progress"

        progress = await client.patch(
            f"/api/v1/jobs/{job['id']}/progress", json={"progress": 60}, headers=headers
        )
        assert progress.json()["progress"] == 60

        done = await client.patch(
            f"/api/v1/jobs/{job['id']}/status",
            json={"status": "completed", "actual_cost": "380.00"},
            headers=headers,
        )
        body = done.json()
        assert body["status"] == "completed"
        assert body["progress"] == 100
        assert body["completed_date"] is not None

        profile = (await client.get("/api/v1/workshops/me", headers=headers)).json()
        assert profile["completed_jobs"] == 1

        tracked = (
            await client.get(f"/api/v1/my/jobs/{job['id']}", headers=await headers_for(customer))
        ).json()
        assert Decimal(tracked["actual_cost"]) == Decimal("380.00")

    @pytest.mark.asyncio
    async def test_progress_only_while_in_progress(self, client, workshop, customer, headers_for):
        job = await self._job(client, workshop, customer, headers_for)
        response = await client.patch(
            f"/api/v1/jobs/{job['id']}/progress", json={"progress": 10}, headers=await headers_for(workshop)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_staff_sees_assigned_jobs(self, client, workshop, customer, staff_member, headers_for):
        job = await self._job(
            client, workshop, customer, headers_for, assigned_staff_id=str(staff_member.id)
        )
        jobs = (await client.get("/api/v1/staff/me/jobs", headers=await headers_for(staff_member))).json()
        assert [j["id"] for j in jobs] == [job["id"]]

    @pytest.mark.asyncio
    async def test_unknown_staff_rejected(self, client, workshop, customer, headers_for):
        response = await client.post(
            "/api/v1/jobs",
            json={
                "customer_id": str(customer.id),
                "vehicle_model": "Proton Saga",
                "service_type": "Battery",
                "assigned_staff_id": str(uuid.uuid4()),
            },
            headers=await headers_for(workshop),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_customer_cannot_see_other_jobs(self, client, workshop, customer, make_user, headers_for):
        job = await self._job(client, workshop, customer, headers_for)
        stranger = await make_user("customer")
        response = await client.get(f"/api/v1/my/jobs/{job['id']}", headers=await headers_for(stranger))
        assert response.status_code == 403


class TestTowing:
    """Roadside towing requests."""

    async def _request(self, client, customer, headers_for):
        response = await client.post(
            "/api/v1/towing",
            json={"pickup_location": "KM 12 Federal Highway", "vehicle": "Proton X50"},
            headers=await headers_for(customer),
        )
        assert response.status_code == 201
        return response.json()

    @pytest.mark.asyncio
    async def test_operator_flow(self, client, customer, make_user, headers_for):
        operator = await make_user("towing")
        request = await self._request(client, customer, headers_for)
        headers = await headers_for(operator)

        assigned = await client.post(
            f"/api/v1/towing/{request['id']}/assign", json={"estimated_cost": "150.00"}, headers=headers
        )
        assert assigned.json()["status"] == "assigned"
        assert assigned.json()["towing_service_id"] == str(operator.id)

        for status in ("en_route", "completed"):
            response = await client.patch(
                f"/api/v1/towing/{request['id']}/status", json={"status": status}, headers=headers
            )
            assert response.json()["status"] == status

    @pytest.mark.asyncio
    async def test_second_operator_conflict(self, client, customer, make_user, headers_for):
        first, second = await make_user("towing"), await make_user("towing")
        request = await self._request(client, customer, headers_for)

        await client.post(f"/api/v1/towing/{request['id']}/assign", json={}, headers=await headers_for(first))
        response = await client.post(
            f"/api/v1/towing/{request['id']}/assign", json={}, headers=await headers_for(second)
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_customer_can_cancel_but_not_progress(self, client, customer, headers_for):
        request = await self._request(client, customer, headers_for)
        headers = await headers_for(customer)

        progress = await client.patch(
            f"/api/v1/towing/{request['id']}/status", json={"status": "en_route"}, headers=headers
        )
        assert progress.status_code == 403

        cancel = await client.patch(
            f"/api/v1/towing/{request['id']}/status", json={"status": "cancelled"}, headers=headers
        )
        assert cancel.json()["status"] == "cancelled"
