"""Request throttling: failed-login bans and fixed-window request limits."""

from __future__ import annotations

import time

from cachetools import TTLCache
import structlog
from fastapi import Depends, Request

from garagehub.auth.dependencies import get_current_user
from garagehub.config import settings
from garagehub.errors import RateLimitedError
from garagehub.models.user import User

logger = structlog.get_logger()


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class LoginRateLimiter:
    """Counts failed logins per client IP and bans after too many."""

    def __init__(self, max_attempts: int, ban_seconds: int):
        self.max_attempts = max_attempts
        self._failures: TTLCache[str, int] = TTLCache(maxsize=10000, ttl=ban_seconds)
        self._banned: TTLCache[str, bool] = TTLCache(maxsize=10000, ttl=ban_seconds)

    def check(self, ip: str) -> None:
        if ip in self._banned:
            raise RateLimitedError("Too many failed login attempts, try again later")

    def record_failure(self, ip: str) -> None:
        failures = self._failures.get(ip, 0) + 1
        self._failures[ip] = failures
        if failures >= self.max_attempts:
            self._banned[ip] = True
            self._failures.pop(ip, None)
            logger.warning("login_ip_banned", ip=ip, attempts=failures)

    def reset(self, ip: str) -> None:
        self._failures.pop(ip, None)

    def clear(self) -> None:
        self._failures.clear()
        self._banned.clear()


class RequestRateLimiter:
    """Allows `max_requests` per key in each fixed window.

    The window opens on a key's first request. Entries are evicted by the
    cache once the window has passed.
    """

    def __init__(self, name: str, max_requests: int, window_seconds: int, message: str):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._hits: TTLCache[str, tuple[float, int]] = TTLCache(maxsize=100000, ttl=window_seconds)

    def hit(self, key: str) -> int:
        """Count one request for a key.

        Returns:
            Requests left in the current window

        Raises:
            RateLimitedError: the key is over its limit
        """
        now = time.monotonic()
        started, count = self._hits.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        count += 1
        self._hits[key] = (started, count)

        if count > self.max_requests:
            if count == self.max_requests + 1:
                logger.warning("rate_limit_exceeded", limiter=self.name, key=key, limit=self.max_requests)
            raise RateLimitedError(self.message)
        return self.max_requests - count

    def clear(self) -> None:
        self._hits.clear()


login_limiter = LoginRateLimiter(settings.login_max_attempts, settings.login_ban_seconds)

api_limiter = RequestRateLimiter(
    "api",
    settings.api_rate_limit_requests,
    settings.api_rate_limit_window_seconds,
    "Too many requests from this IP, please try again later",
)

order_limiter = RequestRateLimiter(
    "order",
    settings.order_rate_limit_requests,
    settings.order_rate_limit_window_seconds,
    "Too many orders placed, please try again later",
)


async def limit_api_requests(request: Request) -> None:
    """Router dependency applied to every /api route."""
    api_limiter.hit(client_ip(request))


async def limit_order_creation(user: User = Depends(get_current_user)) -> None:
    order_limiter.hit(str(user.id))
