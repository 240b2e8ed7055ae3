"""Integration tests for the balance, ledger and recompute endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from timeaccount.config import get_settings
from timeaccount.models.monthly_balance import MonthlyBalance
from timeaccount.services.employee import EmployeeInfo, WorkSchedule

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.services.employee import InMemoryEmployeeService

EMPLOYEE_ID = uuid.uuid4()
BASE_URL = f"/employees/{EMPLOYEE_ID}"


@pytest.fixture(autouse=True)
async def _setup(
    async_client: AsyncClient,
    employee_service: InMemoryEmployeeService,
    load_holidays: Callable[..., Awaitable[None]],
) -> None:
    employee_service.seed(
        EmployeeInfo(id=EMPLOYEE_ID, first_name="Eva", last_name="Berger", hire_date=date(2025, 1, 1))
    )
    await load_holidays(2025)
    for day in ("2025-01-02", "2025-01-03"):
        resp = await async_client.post(
            "/time-entries",
            json={
                "employee_id": str(EMPLOYEE_ID),
                "date": day,
                "start_time": "08:00:00",
                "end_time": "17:30:00",
                "break_minutes": 30,
            },
        )
        assert resp.status_code == 201


# ---------------------------------------------------------------------------
# Live calculation
# ---------------------------------------------------------------------------


async def test_live_defaults_to_hire_date(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/overtime/live")).json()

    assert data["start_date"] == "2025-01-01"
    assert data["end_date"] == "2025-02-14"
    assert len(data["days"]) == 22 + 10
    assert [m["key"] for m in data["months"]] == ["2025-01", "2025-02"]
    assert data["weeks"][0]["key"] == "2025-W01"
    assert data["totals"]["target_minutes"] == 32 * 480
    assert data["totals"]["overtime_minutes"] == 2 * 60 - 30 * 480
    assert data["days"][-1]["cumulative_minutes"] == data["totals"]["overtime_minutes"]


async def test_live_default_reaches_back_before_current_year(
    async_client: AsyncClient,
    employee_service: InMemoryEmployeeService,
    load_holidays: Callable[..., Awaitable[None]],
) -> None:
    employee_service.seed(
        EmployeeInfo(id=EMPLOYEE_ID, first_name="Eva", last_name="Berger", hire_date=date(2024, 12, 2))
    )
    await load_holidays(2024)

    data = (await async_client.get(f"{BASE_URL}/overtime/live")).json()

    assert data["start_date"] == "2024-12-02"
    assert [m["key"] for m in data["months"]] == ["2024-12", "2025-01", "2025-02"]
    # December 2024 has 22 weekdays from the 2nd, two of them Christmas holidays.
    assert data["months"][0]["target_minutes"] == 20 * 480


async def test_live_day_details(async_client: AsyncClient) -> None:
    data = (
        await async_client.get(
            f"{BASE_URL}/overtime/live", params={"from_date": "2025-01-01", "to_date": "2025-01-03"}
        )
    ).json()

    assert [d["date"] for d in data["days"]] == ["2025-01-02", "2025-01-03"]
    first = data["days"][0]
    assert first["worked_minutes"] == 540
    assert first["target_minutes"] == 480
    assert first["overtime_minutes"] == 60
    assert first["is_working_day"] is True
    assert first["holiday_name"] is None


async def test_live_holiday_work_is_listed(async_client: AsyncClient) -> None:
    await async_client.post(
        "/time-entries",
        json={
            "employee_id": str(EMPLOYEE_ID),
            "date": "2025-01-01",
            "start_time": "10:00:00",
            "end_time": "12:00:00",
        },
    )
    data = (
        await async_client.get(
            f"{BASE_URL}/overtime/live", params={"from_date": "2025-01-01", "to_date": "2025-01-01"}
        )
    ).json()

    [day] = data["days"]
    assert day["holiday_name"] == "Neujahr"
    assert day["target_minutes"] == 0
    assert day["overtime_minutes"] == 120


async def test_live_inverted_range_returns_400(async_client: AsyncClient) -> None:
    resp = await async_client.get(
        f"{BASE_URL}/overtime/live", params={"from_date": "2025-02-01", "to_date": "2025-01-01"}
    )
    assert resp.status_code == 400


async def test_live_before_hire_is_empty(async_client: AsyncClient) -> None:
    data = (
        await async_client.get(
            f"{BASE_URL}/overtime/live", params={"from_date": "2024-06-01", "to_date": "2024-12-31"}
        )
    ).json()

    assert data["start_date"] is None
    assert data["days"] == []
    assert data["totals"]["overtime_minutes"] == 0


async def test_live_uses_work_schedule(
    async_client: AsyncClient, employee_service: InMemoryEmployeeService
) -> None:
    employee_service.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            first_name="Eva",
            last_name="Berger",
            hire_date=date(2025, 1, 1),
            work_schedule=WorkSchedule(monday=8, wednesday=6),
        )
    )
    data = (
        await async_client.get(
            f"{BASE_URL}/overtime/live", params={"from_date": "2025-01-06", "to_date": "2025-01-12"}
        )
    ).json()

    assert [d["date"] for d in data["days"]] == ["2025-01-06", "2025-01-08"]
    assert data["totals"]["target_minutes"] == 14 * 60


# ---------------------------------------------------------------------------
# Materialized balances
# ---------------------------------------------------------------------------


async def test_monthly_balance(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/balances/monthly/2025-01")
    assert resp.status_code == 200
    data = resp.json()
    assert data["month"] == "2025-01"
    assert data["target_minutes"] == 22 * 480
    assert data["actual_minutes"] == 2 * 540
    assert data["overtime_minutes"] == 2 * 540 - 22 * 480
    assert data["carryover_minutes"] is None
    assert data["days"] is None


async def test_monthly_balance_with_days(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/balances/monthly/2025-01", params={"include_days": True})).json()
    assert len(data["days"]) == 22
    assert sum(d["overtime_minutes"] for d in data["days"]) == data["overtime_minutes"]


@pytest.mark.parametrize("month", ["2025-13", "2025-1", "january"])
async def test_monthly_balance_invalid_month(async_client: AsyncClient, month: str) -> None:
    resp = await async_client.get(f"{BASE_URL}/balances/monthly/{month}")
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidRangeError"


async def test_yearly_balance(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/balances/yearly/2025")).json()

    assert data["year"] == 2025
    assert [m["month"] for m in data["months"]] == ["2025-01", "2025-02"]
    assert data["carryover_minutes"] == 0
    assert data["overtime_minutes"] == sum(m["overtime_minutes"] for m in data["months"])
    assert data["balance_minutes"] == data["overtime_minutes"]


async def test_yearly_balance_of_future_year_is_empty(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/balances/yearly/2026")).json()
    assert data["months"] == []
    assert data["balance_minutes"] == 0


async def test_balance_as_of(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/balances/as-of/2025-01-03")).json()
    assert data["as_of"] == "2025-01-03"
    assert data["balance_minutes"] == 120


async def test_sufficiency_check(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE_URL}/balances/sufficiency", json={"requested_minutes": 480})
    assert resp.status_code == 200
    data = resp.json()
    assert data["balance_minutes"] == 2 * 60 - 30 * 480
    assert data["remaining_minutes"] == data["balance_minutes"] - 480
    assert data["min_balance_minutes"] == get_settings().min_overtime_balance_minutes
    assert data["sufficient"] is False

    lenient = await async_client.post(
        f"{BASE_URL}/balances/sufficiency", json={"requested_minutes": 480, "min_balance_minutes": -20000}
    )
    assert lenient.json()["sufficient"] is True


async def test_sufficiency_rejects_negative_request(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"{BASE_URL}/balances/sufficiency", json={"requested_minutes": -1})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


async def test_transactions_newest_first(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/transactions", params={"limit": 3})).json()

    assert data["total"] == 32
    assert [t["date"] for t in data["items"]] == ["2025-02-14", "2025-02-13", "2025-02-12"]
    assert data["items"][0]["transaction_type"] == "EARNED"
    assert data["items"][0]["type_label"] == "Worked time vs. target"
    assert data["items"][0]["description"] == "No time recorded (target 8h)"


async def test_transactions_for_one_month(async_client: AsyncClient) -> None:
    data = (await async_client.get(f"{BASE_URL}/transactions", params={"year": 2025, "month": 1})).json()
    assert data["total"] == 22
    worked = [t for t in data["items"] if t["date"] == "2025-01-02"]
    assert worked[0]["description"] == "Worked 9h (target 8h)"
    assert worked[0]["amount_minutes"] == 60


async def test_transactions_month_without_year_returns_400(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{BASE_URL}/transactions", params={"month": 1})
    assert resp.status_code == 400


async def test_ledger_sum_equals_yearly_balance(async_client: AsyncClient) -> None:
    yearly = (await async_client.get(f"{BASE_URL}/balances/yearly/2025")).json()
    ledger = (await async_client.get(f"{BASE_URL}/transactions", params={"year": 2025, "limit": 100})).json()
    assert sum(t["amount_minutes"] for t in ledger["items"]) == yearly["balance_minutes"]


# ---------------------------------------------------------------------------
# Recompute and consistency
# ---------------------------------------------------------------------------


async def test_recompute_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    resp = await async_client.post(f"{BASE_URL}/recompute")
    assert resp.status_code == 200
    data = resp.json()
    assert data["months_recomputed"] == 2
    assert data["first_month"] == "2025-01"
    assert data["last_month"] == "2025-02"

    rows = (await db_session.execute(select(MonthlyBalance))).scalars().all()
    assert len(rows) == 2


async def test_diverging_cache_returns_500(
    async_client: AsyncClient,
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await async_client.get(f"{BASE_URL}/balances/monthly/2025-01")
    row = (await db_session.execute(select(MonthlyBalance))).scalars().one()
    row.actual_minutes = 0
    await db_session.commit()

    monkeypatch.setattr(get_settings(), "verify_cache_on_read", True)
    resp = await async_client.get(f"{BASE_URL}/balances/monthly/2025-01")
    assert resp.status_code == 500
    assert resp.json()["error"] == "ConsistencyError"


# ---------------------------------------------------------------------------
# Unknown employee
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/overtime/live"),
        ("GET", "/balances/monthly/2025-01"),
        ("GET", "/balances/yearly/2025"),
        ("GET", "/balances/as-of/2025-01-31"),
        ("GET", "/transactions"),
        ("POST", "/rollover/2025"),
        ("POST", "/recompute"),
    ],
)
async def test_unknown_employee_returns_404(async_client: AsyncClient, method: str, path: str) -> None:
    resp = await async_client.request(method, f"/employees/{uuid.uuid4()}{path}")
    assert resp.status_code == 404
