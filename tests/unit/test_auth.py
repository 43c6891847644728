"""Tests for password policy, login rate limiting and sessions."""
from __future__ import annotations

import json

import pytest
from unittest.mock import AsyncMock, patch

from garagehub.auth.passwords import (
    hash_password,
    is_valid_phone,
    password_policy_errors,
    verify_password,
)
from garagehub.auth.rate_limit import LoginRateLimiter, RequestRateLimiter
from garagehub.auth.sessions import SESSION_PREFIX, create_session, get_session
from garagehub.errors import RateLimitedError


class TestPasswordPolicy:
    """Password strength rules."""

    def test_strong_password_passes(self):
        assert password_policy_errors("Secret#123") == []

    def test_short_password(self):
        assert "at least 8 characters" in password_policy_errors("Ab#1")

    def test_reports_every_missing_class(self):
        errors = password_policy_errors("alllowercase")
        assert "an uppercase letter" in errors
        assert "a digit" in errors
        assert "a special character" in errors
        assert "a lowercase letter" not in errors

    def test_hash_roundtrip(self):
        hashed = hash_password("Secret#123")
        assert hashed != "Secret#123"
        assert verify_password("Secret#123", hashed)
        assert not verify_password("Secret#124", hashed)


class TestPhoneFormat:
    @pytest.mark.parametrize("phone", ["0123456789", "+60123456789", "012-345 6789", "60387654321"])
    def test_valid(self, phone):
        assert is_valid_phone(phone)

    @pytest.mark.parametrize("phone", ["12345", "+44123456789", "01234abcde"])
    def test_invalid(self, phone):
        assert not is_valid_phone(phone)


class TestLoginRateLimiter:
    """Per-IP failed login counting."""

    def test_bans_after_max_attempts(self):
        limiter = LoginRateLimiter(max_attempts=3, ban_seconds=60)
        for _ in range(3):
            limiter.check("10.0.0.1")
            limiter.record_failure("10.0.0.1")

        with pytest.raises(RateLimitedError):
            limiter.check("10.0.0.1")

    def test_other_ips_unaffected(self):
        limiter = LoginRateLimiter(max_attempts=1, ban_seconds=60)
        limiter.record_failure("10.0.0.1")
        limiter.check("10.0.0.2")

    def test_success_resets_counter(self):
        limiter = LoginRateLimiter(max_attempts=2, ban_seconds=60)
        limiter.record_failure("10.0.0.1")
        limiter.reset("10.0.0.1")
        limiter.record_failure("10.0.0.1")
        limiter.check("10.0.0.1")

    def test_clear_lifts_bans(self):
        limiter = LoginRateLimiter(max_attempts=1, ban_seconds=60)
        limiter.record_failure("10.0.0.1")
        limiter.clear()
        limiter.check("10.0.0.1")


class TestRequestRateLimiter:
    """Fixed-window request counting."""

    def make(self, max_requests=3, window_seconds=900):
        return RequestRateLimiter("api", max_requests, window_seconds, "Too many requests")

    def test_allows_up_to_limit(self):
        limiter = self.make()
        assert [limiter.hit("10.0.0.1") for _ in range(3)] == [2, 1, 0]

        with pytest.raises(RateLimitedError, match="Too many requests"):
            limiter.hit("10.0.0.1")

    def test_keys_are_independent(self):
        limiter = self.make(max_requests=1)
        limiter.hit("10.0.0.1")
        assert limiter.hit("10.0.0.2") == 0

    def test_window_restarts_after_expiry(self):
        limiter = self.make(max_requests=1, window_seconds=900)
        with patch("garagehub.auth.rate_limit.time") as clock:
            clock.monotonic.return_value = 1000.0
            limiter.hit("10.0.0.1")
            clock.monotonic.return_value = 1899.0
            with pytest.raises(RateLimitedError):
                limiter.hit("10.0.0.1")

            clock.monotonic.return_value = 1900.0
            assert limiter.hit("10.0.0.1") == 0


class TestSessions:
    """Redis session storage."""

    @pytest.mark.asyncio
    async def test_create_session_stores_user_and_role(self):
        redis = AsyncMock()
        token = await create_session(redis, "user-1", "workshop")

        redis.setex.assert_awaited_once()
        key, ttl, payload = redis.setex.call_args.args
        assert key == f"{SESSION_PREFIX}{token}"
        assert json.loads(payload) == {"user_id": "user-1", "role": "workshop"}

    @pytest.mark.asyncio
    async def test_get_session_missing(self):
        redis = AsyncMock()
        redis.get = AsyncMock(return_value=None)
        assert await get_session(redis, "nope") is None

    @pytest.mark.asyncio
    async def test_get_session_corrupt_payload(self):
        redis = AsyncMock()
        redis.get = AsyncMock(return_value="not json")
        assert await get_session(redis, "token") is None

    @pytest.mark.asyncio
    async def test_empty_token_skips_redis(self):
        redis = AsyncMock()
        assert await get_session(redis, "") is None
        redis.get.assert_not_called()
