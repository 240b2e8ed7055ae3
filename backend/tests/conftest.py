from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from timeaccount.clock import FixedClock, get_clock
from timeaccount.db import get_session
from timeaccount.main import app
from timeaccount.models import SQLModel
from timeaccount.models.enums import HolidayJurisdiction
from timeaccount.schemas.holiday import CreateHolidayRequest, LoadHolidayYearRequest
from timeaccount.services.employee import InMemoryEmployeeService, get_employee_service, set_employee_service
from timeaccount.services.holiday import german_federal_holidays, load_holiday_year

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# "Today" for every test unless a test moves the clock.
TODAY = date(2025, 2, 14)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    Services commit month by month, so each test gets its own database
    instead of an outer transaction that is rolled back.
    """
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture(autouse=True)
def employee_service() -> Iterator[InMemoryEmployeeService]:
    """Give every test an empty employee stub."""
    previous = get_employee_service()
    svc = InMemoryEmployeeService()
    set_employee_service(svc)
    yield svc
    set_employee_service(previous)


@pytest.fixture
def load_holidays(db_session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Load the German federal holidays for the given years."""

    async def _load(*years: int) -> None:
        for year in years:
            payload = LoadHolidayYearRequest(
                holidays=[
                    CreateHolidayRequest(date=day, name=name, jurisdiction=HolidayJurisdiction.FEDERAL)
                    for day, name in german_federal_holidays(year)
                ],
            )
            await load_holiday_year(db_session, year, payload)

    return _load


@pytest.fixture
async def async_client(db_session: AsyncSession, clock: FixedClock) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session and clock overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
