from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from timeaccount import middleware
from timeaccount.clock import FixedClock, get_clock
from timeaccount.config import get_settings
from timeaccount.db import get_session
from timeaccount.main import app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable


async def test_health_reports_ok(
    async_client: AsyncClient, load_holidays: Callable[..., Awaitable[None]]
) -> None:
    await load_holidays(2025)

    response = await async_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data == {
        "status": "ok",
        "version": get_settings().app_version,
        "environment": get_settings().environment,
        "today": "2025-02-14",
        "holidays_loaded": True,
    }


async def test_health_degraded_without_current_holidays(
    async_client: AsyncClient, load_holidays: Callable[..., Awaitable[None]]
) -> None:
    await load_holidays(2024)

    data = (await async_client.get("/health")).json()
    assert data["status"] == "degraded"
    assert data["holidays_loaded"] is False


async def test_health_degraded_on_db_failure() -> None:
    """GET /health stays up but reports degraded when the database is unreachable."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = ConnectionError("DB unreachable")

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    app.dependency_overrides[get_session] = _broken_session
    app.dependency_overrides[get_clock] = lambda: FixedClock(date(2025, 2, 14))
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["holidays_loaded"] is False
    finally:
        app.dependency_overrides.clear()


async def test_unknown_route_is_404(async_client: AsyncClient) -> None:
    response = await async_client.get("/companies")
    assert response.status_code == 404


async def test_slow_requests_are_logged(
    async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(middleware, "SLOW_REQUEST_SECONDS", 0.0)
    with caplog.at_level("WARNING", logger="timeaccount.middleware"):
        await async_client.get("/health")
    assert "Slow request GET /health -> 200" in caplog.text
