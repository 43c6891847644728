"""Tests for application startup and shutdown."""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from garagehub.main import app, lifespan


class TestLifespan:
    """Schema creation on startup, connections released on shutdown."""

    @pytest.mark.asyncio
    async def test_startup_creates_schema_and_shutdown_closes(self):
        with patch("garagehub.main.init_db", new=AsyncMock()) as init_db, patch(
            "garagehub.main.close_db", new=AsyncMock()
        ) as close_db, patch("garagehub.main.close_redis", new=AsyncMock()) as close_redis:
            async with lifespan(app):
                init_db.assert_awaited_once()
                close_db.assert_not_called()

        close_db.assert_awaited_once()
        close_redis.assert_awaited_once()
