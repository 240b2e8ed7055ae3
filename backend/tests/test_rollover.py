"""Tests for year-boundary carryover of the time-account balance."""

from __future__ import annotations

import uuid
from datetime import date, time
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import col

from timeaccount import db, worker
from timeaccount.exceptions import InvalidRangeError
from timeaccount.models.enums import TransactionType
from timeaccount.models.monthly_balance import MonthlyBalance
from timeaccount.models.time_entry import TimeEntry
from timeaccount.models.transaction import OvertimeTransaction
from timeaccount.schemas.correction import CreateCorrectionRequest
from timeaccount.services import materializer
from timeaccount.services.correction import create_correction
from timeaccount.services.employee import EmployeeInfo
from timeaccount.services.ledger import carryover_marker_id
from timeaccount.services.rollover import (
    ensure_year_rollover,
    get_carryover_history,
    preview_year_rollover,
    run_year_rollover,
)
from timeaccount.services.schedule import iter_days

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

    from timeaccount.clock import FixedClock
    from timeaccount.services.employee import InMemoryEmployeeService

EMPLOYEE_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()

# 41 working days in Nov/Dec 2024 at one hour of overtime each.
CLOSING_2024 = 41 * 60


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def employee(
    db_session: AsyncSession,
    employee_service: InMemoryEmployeeService,
    load_holidays: Callable[..., Awaitable[None]],
) -> EmployeeInfo:
    """Hired November 2024, nine-hour days through the end of 2024."""
    emp = EmployeeInfo(
        id=EMPLOYEE_ID,
        first_name="Jonas",
        last_name="Brandt",
        hire_date=date(2024, 11, 1),
        weekly_hours=40,
    )
    employee_service.seed(emp)
    await load_holidays(2024, 2025)

    holidays = {date(2024, 12, 25), date(2024, 12, 26)}
    for day in iter_days(date(2024, 11, 1), date(2024, 12, 31)):
        if day.weekday() < 5 and day not in holidays:
            db_session.add(
                TimeEntry(
                    employee_id=EMPLOYEE_ID,
                    date=day,
                    start_time=time(8, 0),
                    end_time=time(17, 0),
                    break_minutes=0,
                    worked_minutes=540,
                )
            )
    await db_session.commit()
    return emp


async def _markers(session: AsyncSession) -> list[OvertimeTransaction]:
    result = await session.execute(
        select(OvertimeTransaction).where(
            col(OvertimeTransaction.employee_id) == EMPLOYEE_ID,
            col(OvertimeTransaction.transaction_type) == TransactionType.CARRYOVER.value,
        )
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Rollover
# ---------------------------------------------------------------------------


async def test_rollover_carries_closing_balance(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    result = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)

    assert result.carryover_minutes == CLOSING_2024
    assert result.created is True
    assert result.marker_id == carryover_marker_id(EMPLOYEE_ID, 2025)
    assert await materializer.closing_balance(db_session, employee, 2024, clock) == CLOSING_2024

    january = await materializer.ensure_month(db_session, employee, "2025-01", clock)
    assert january.carryover_minutes == CLOSING_2024

    markers = await _markers(db_session)
    assert len(markers) == 1
    assert markers[0].date == date(2025, 1, 1)
    assert markers[0].amount_minutes == 0
    assert markers[0].description == "Carryover from 2024: +41h"


async def test_rollover_is_idempotent(db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo) -> None:
    first = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)
    second = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)

    assert second.created is False
    assert second.carryover_minutes == first.carryover_minutes
    assert second.marker_id == first.marker_id
    assert len(await _markers(db_session)) == 1

    rows = await db_session.execute(
        select(func.count()).select_from(MonthlyBalance).where(col(MonthlyBalance.month) == "2025-01")
    )
    assert rows.scalar_one() == 1


async def test_prior_year_change_updates_carryover(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)

    await create_correction(
        db_session,
        CreateCorrectionRequest(
            employee_id=EMPLOYEE_ID,
            date=date(2024, 12, 10),
            amount_minutes=-90,
            reason="Unrecorded early leave",
            created_by=ADMIN_ID,
        ),
    )
    january = await db_session.execute(select(MonthlyBalance).where(col(MonthlyBalance.month) == "2025-01"))
    assert january.scalar_one().is_dirty is True

    result = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)
    assert result.carryover_minutes == CLOSING_2024 - 90
    assert result.created is False

    markers = await _markers(db_session)
    assert len(markers) == 1
    assert markers[0].description == "Carryover from 2024: +39.5h"


async def test_yearly_balance_includes_carryover(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    yearly = await materializer.get_yearly_balance(db_session, EMPLOYEE_ID, 2025, clock)

    assert yearly.carryover_minutes == CLOSING_2024
    assert yearly.balance_minutes == CLOSING_2024 + yearly.overtime_minutes
    assert yearly.months[0].carryover_minutes == CLOSING_2024
    assert yearly.months[1].carryover_minutes is None


async def test_balance_as_of_spans_the_year_boundary(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    on_new_year = await materializer.get_balance_as_of(db_session, EMPLOYEE_ID, date(2025, 1, 1), clock)
    assert on_new_year.balance_minutes == CLOSING_2024

    after_one_day = await materializer.get_balance_as_of(db_session, EMPLOYEE_ID, date(2025, 1, 2), clock)
    assert after_one_day.balance_minutes == CLOSING_2024 - 480


async def test_hire_year_has_no_carryover(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    result = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2024, clock)

    assert result.carryover_minutes == 0
    assert result.marker_id is None
    assert result.created is False
    assert await _markers(db_session) == []


async def test_future_year_is_rejected(db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo) -> None:
    with pytest.raises(InvalidRangeError):
        await ensure_year_rollover(db_session, EMPLOYEE_ID, 2026, clock)


async def test_carryover_chains_over_several_years(
    db_session: AsyncSession,
    clock: FixedClock,
    employee: EmployeeInfo,
    load_holidays: Callable[..., Awaitable[None]],
) -> None:
    await load_holidays(2026)
    clock.current = date(2026, 1, 5)

    closing_2025 = await materializer.closing_balance(db_session, employee, 2025, clock)
    yearly_2025 = await materializer.get_yearly_balance(db_session, EMPLOYEE_ID, 2025, clock)
    assert closing_2025 == yearly_2025.balance_minutes

    result = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2026, clock)
    assert result.carryover_minutes == closing_2025
    assert len(await _markers(db_session)) == 2


async def test_terminated_employee_stops_carrying(
    db_session: AsyncSession,
    clock: FixedClock,
    employee: EmployeeInfo,
    employee_service: InMemoryEmployeeService,
) -> None:
    employee_service.seed(employee.model_copy(update={"termination_date": date(2024, 12, 31)}))

    result = await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)

    assert result.marker_id is None
    assert result.carryover_minutes == 0


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_rollover_endpoint(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    resp = await async_client.post(f"/employees/{EMPLOYEE_ID}/rollover/2025")
    assert resp.status_code == 200
    data = resp.json()
    assert data["carryover_minutes"] == CLOSING_2024
    assert data["created"] is True

    resp = await async_client.post(f"/employees/{EMPLOYEE_ID}/rollover/2025")
    assert resp.json()["created"] is False


async def test_rollover_endpoint_future_year(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    resp = await async_client.post(f"/employees/{EMPLOYEE_ID}/rollover/2030")
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRangeError"


# ---------------------------------------------------------------------------
# Runs over all employees
# ---------------------------------------------------------------------------


async def test_run_year_rollover_counts_outcomes(
    db_session: AsyncSession,
    clock: FixedClock,
    employee: EmployeeInfo,
    employee_service: InMemoryEmployeeService,
) -> None:
    employee_service.seed(
        EmployeeInfo(id=uuid.uuid4(), first_name="Neu", last_name="Zugang", hire_date=date(2025, 2, 1))
    )

    first = await run_year_rollover(db_session, clock)
    assert (first.year, first.carried, first.already_done, first.skipped, first.errors) == (2025, 1, 0, 1, 0)

    second = await run_year_rollover(db_session, clock, 2025)
    assert (second.carried, second.already_done, second.skipped) == (0, 1, 1)
    assert len(await _markers(db_session)) == 1


async def test_run_year_rollover_isolates_failures(
    db_session: AsyncSession,
    clock: FixedClock,
    employee: EmployeeInfo,
    employee_service: InMemoryEmployeeService,
) -> None:
    # Hired in 2023, whose holidays were never loaded.
    employee_service.seed(
        EmployeeInfo(id=uuid.uuid4(), first_name="Alt", last_name="Bestand", hire_date=date(2023, 6, 1))
    )

    result = await run_year_rollover(db_session, clock)

    assert result.carried == 1
    assert result.errors == 1


async def test_worker_run_once(
    engine: AsyncEngine,
    clock: FixedClock,
    employee: EmployeeInfo,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setattr(db, "get_session_factory", lambda: async_sessionmaker(engine, expire_on_commit=False))
    monkeypatch.setattr(worker, "get_clock", lambda: clock)

    with caplog.at_level("INFO", logger="timeaccount.worker"):
        await worker.run_once()

    assert "carried=1" in caplog.text


async def test_rollover_all_endpoint(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    resp = await async_client.post("/rollover/2025")
    assert resp.status_code == 200
    assert resp.json() == {"year": 2025, "carried": 1, "already_done": 0, "skipped": 0, "errors": 0}


# ---------------------------------------------------------------------------
# Preview and history
# ---------------------------------------------------------------------------


async def _count(session: AsyncSession, model: type) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def test_preview_reports_carryover_without_writing(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    preview = await preview_year_rollover(db_session, clock, 2025)

    assert preview.previous_year == 2024
    [item] = preview.items
    assert item.carryover_minutes == CLOSING_2024
    assert item.already_carried is False
    assert item.warnings == []
    assert preview.total_carryover_minutes == CLOSING_2024
    assert await _count(db_session, OvertimeTransaction) == 0
    assert await _count(db_session, MonthlyBalance) == 0

    await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)
    [item] = (await preview_year_rollover(db_session, clock, 2025)).items
    assert item.already_carried is True
    assert item.carryover_minutes == CLOSING_2024


async def test_preview_warns_about_new_hires_and_failed_calculations(
    db_session: AsyncSession,
    clock: FixedClock,
    employee: EmployeeInfo,
    employee_service: InMemoryEmployeeService,
) -> None:
    new_hire = EmployeeInfo(id=uuid.uuid4(), first_name="Neu", last_name="Zugang", hire_date=date(2025, 2, 1))
    # Hired in 2023, whose holidays were never loaded.
    veteran = EmployeeInfo(id=uuid.uuid4(), first_name="Alt", last_name="Bestand", hire_date=date(2023, 6, 1))
    employee_service.seed(new_hire)
    employee_service.seed(veteran)

    preview = await preview_year_rollover(db_session, clock, 2025)
    items = {item.employee_id: item for item in preview.items}

    assert items[new_hire.id].carryover_minutes is None
    assert items[new_hire.id].warnings == ["Hired in 2025: no carryover into 2025"]
    assert items[veteran.id].carryover_minutes is None
    assert items[veteran.id].warnings[0].startswith("Could not calculate overtime balance")
    assert preview.total_carryover_minutes == CLOSING_2024


async def test_preview_of_next_year_is_allowed_but_not_beyond(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    preview = await preview_year_rollover(db_session, clock, 2026)
    assert preview.items[0].carryover_minutes is not None

    with pytest.raises(InvalidRangeError):
        await preview_year_rollover(db_session, clock, 2027)


async def test_carryover_history_lists_markers(
    db_session: AsyncSession, clock: FixedClock, employee: EmployeeInfo
) -> None:
    assert (await get_carryover_history(db_session, EMPLOYEE_ID, clock)).items == []

    await ensure_year_rollover(db_session, EMPLOYEE_ID, 2025, clock)
    [item] = (await get_carryover_history(db_session, EMPLOYEE_ID, clock)).items

    assert item.year == 2025
    assert item.carryover_minutes == CLOSING_2024
    assert item.description == "Carryover from 2024: +41h"
    assert item.transaction_id == carryover_marker_id(EMPLOYEE_ID, 2025)


async def test_carryover_history_endpoint(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    await async_client.post(f"/employees/{EMPLOYEE_ID}/rollover/2025")

    resp = await async_client.get(f"/employees/{EMPLOYEE_ID}/rollover/history")
    assert resp.status_code == 200
    assert [i["year"] for i in resp.json()["items"]] == [2025]


async def test_rollover_preview_endpoint(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    resp = await async_client.get("/rollover/2025/preview")
    assert resp.status_code == 200
    data = resp.json()
    assert data["items"][0]["carryover_minutes"] == CLOSING_2024
    assert data["items"][0]["already_carried"] is False


async def test_rollover_runs_are_recorded(async_client: AsyncClient, employee: EmployeeInfo) -> None:
    await async_client.post("/rollover/2025", params={"actor_id": str(ADMIN_ID)})
    await async_client.post("/rollover/2025", params={"actor_id": str(ADMIN_ID)})

    resp = await async_client.get("/rollover/history")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert sorted(run["carried"] for run in data["items"]) == [0, 1]
    assert all(run["year"] == 2025 for run in data["items"])
    assert all(run["executed_by"] == str(ADMIN_ID) for run in data["items"])
    assert all(run["success"] for run in data["items"])
