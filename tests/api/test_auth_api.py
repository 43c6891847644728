"""Tests for registration, approval and login."""
from __future__ import annotations

import pytest

from garagehub.auth.rate_limit import api_limiter

PASSWORD = "Secret#123"

WORKSHOP_SIGNUP = {
    "email": "owner@kumarauto.my",
    "password": PASSWORD,
    "confirm_password": PASSWORD,
    "first_name": "Kumar",
    "role": "workshop",
    "phone": "0123456789",
    "business_name": "Kumar Auto Service",
    "address": "12 Jalan SS2/24",
    "state": "Selangor",
    "city": "Petaling Jaya",
}


class TestRegistration:
    """Sign-up rules per role."""

    @pytest.mark.asyncio
    async def test_customer_is_approved_immediately(self, client):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "Aisyah@Example.com",
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "first_name": "Aisyah",
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "aisyah@example.com"
        assert body["role"] == "customer"
        assert body["is_approved"] is True

    @pytest.mark.asyncio
    async def test_workshop_waits_for_approval(self, client):
        response = await client.post("/api/v1/auth/register", json=WORKSHOP_SIGNUP)
        assert response.status_code == 201
        assert response.json()["is_approved"] is False

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": WORKSHOP_SIGNUP["email"], "password": PASSWORD},
        )
        assert login.status_code == 403
        assert "approval" in login.json()["detail"]

    @pytest.mark.asyncio
    async def test_admin_approval_unlocks_login(self, client, admin, headers_for):
        user_id = (await client.post("/api/v1/auth/register", json=WORKSHOP_SIGNUP)).json()["id"]

        approve = await client.post(
            f"/api/v1/admin/users/{user_id}/approve", headers=await headers_for(admin)
        )
        assert approve.status_code == 200

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": WORKSHOP_SIGNUP["email"], "password": PASSWORD},
        )
        assert login.status_code == 200
        token = login.json()["token"]

        workshop = await client.get(
            "/api/v1/workshops/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert workshop.status_code == 200
        assert workshop.json()["is_verified"] is True

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, customer):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": customer.email,
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "first_name": "Again",
            },
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_weak_password(self, client):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "weak@example.com",
                "password": "password",
                "confirm_password": "password",
                "first_name": "Weak",
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_supplier_needs_delivery_method(self, client):
        payload = {**WORKSHOP_SIGNUP, "role": "supplier", "supplier_type": "OEM"}
        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 422


class TestLogin:
    """Sessions and brute-force protection."""

    @pytest.mark.asyncio
    async def test_login_sets_cookie_and_me_works(self, client, customer):
        response = await client.post(
            "/api/v1/auth/login", json={"email": customer.email, "password": PASSWORD}
        )
        assert response.status_code == 200
        assert "garagehub_session" in response.cookies

        me = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {response.json()['token']}"}
        )
        assert me.json()["id"] == str(customer.id)

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, customer):
        response = await client.post(
            "/api/v1/auth/login", json={"email": customer.email, "password": "Wrong#1234"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_ip_banned_after_repeated_failures(self, client, customer):
        for _ in range(5):
            response = await client.post(
                "/api/v1/auth/login", json={"email": customer.email, "password": "Wrong#1234"}
            )
            assert response.status_code == 401

        # Correct password no longer helps while banned
        response = await client.post(
            "/api/v1/auth/login", json={"email": customer.email, "password": PASSWORD}
        )
        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client, customer, headers_for):
        headers = await headers_for(customer)
        assert (await client.post("/api/v1/auth/logout", headers=headers)).status_code == 200
        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_deactivated_user_rejected(self, client, customer, admin, headers_for):
        headers = await headers_for(customer)
        await client.post(
            f"/api/v1/admin/users/{customer.id}/deactivate", headers=await headers_for(admin)
        )
        assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_role_guard(self, client, customer, headers_for):
        response = await client.get("/api/v1/admin/users", headers=await headers_for(customer))
        assert response.status_code == 403


class TestRequestLimit:
    """Per-IP ceiling on /api requests."""

    @pytest.mark.asyncio
    async def test_api_requests_throttled_per_ip(self, client, customer, headers_for, monkeypatch):
        monkeypatch.setattr(api_limiter, "max_requests", 3)
        headers = await headers_for(customer)

        for _ in range(3):
            assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 200

        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 429
        assert response.json()["detail"] == "Too many requests from this IP, please try again later"

        # Anonymous calls from the same address count too
        response = await client.post("/api/v1/auth/login", json={"email": customer.email, "password": PASSWORD})
        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_root_is_not_throttled(self, client, monkeypatch):
        monkeypatch.setattr(api_limiter, "max_requests", 1)
        for _ in range(3):
            assert (await client.get("/")).status_code == 200
