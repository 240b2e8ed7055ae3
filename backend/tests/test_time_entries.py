"""Tests for recording and deleting worked shifts."""

from __future__ import annotations

import uuid
from datetime import date, time
from typing import TYPE_CHECKING

import pytest

from timeaccount.exceptions import ValidationError
from timeaccount.models.enums import AuditEntityType
from timeaccount.services.audit import list_audit_entries
from timeaccount.services.employee import EmployeeInfo
from timeaccount.services.time_entry import compute_worked_minutes

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.services.employee import InMemoryEmployeeService

EMPLOYEE_ID = uuid.uuid4()
ACTOR_ID = uuid.uuid4()
ENTRIES_URL = "/time-entries"
LIST_URL = f"/employees/{EMPLOYEE_ID}/time-entries"


@pytest.fixture(autouse=True)
def _seed_employee(employee_service: InMemoryEmployeeService) -> None:
    employee_service.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID,
            first_name="Ida",
            last_name="Schulz",
            hire_date=date(2025, 1, 1),
            termination_date=date(2025, 12, 31),
        )
    )


def _entry_payload(
    day: str = "2025-01-06",
    start: str = "08:00:00",
    end: str = "16:30:00",
    break_minutes: int = 30,
) -> dict:
    return {
        "employee_id": str(EMPLOYEE_ID),
        "date": day,
        "start_time": start,
        "end_time": end,
        "break_minutes": break_minutes,
        "actor_id": str(ACTOR_ID),
    }


# ---------------------------------------------------------------------------
# Worked minutes
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("start", "end", "break_minutes", "expected"),
    [
        (time(8, 0), time(16, 30), 30, 480),
        (time(9, 15), time(12, 0), 0, 165),
        (time(22, 0), time(6, 0), 30, 450),
        (time(23, 30), time(0, 15), 0, 45),
        (time(7, 0), time(7, 0), 60, 1380),
    ],
)
def test_compute_worked_minutes(start: time, end: time, break_minutes: int, expected: int) -> None:
    assert compute_worked_minutes(start, end, break_minutes) == expected


def test_break_longer_than_shift_is_rejected() -> None:
    with pytest.raises(ValidationError):
        compute_worked_minutes(time(9, 0), time(10, 0), 60)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_create_time_entry(async_client: AsyncClient) -> None:
    resp = await async_client.post(ENTRIES_URL, json=_entry_payload())
    assert resp.status_code == 201
    data = resp.json()
    assert data["employee_id"] == str(EMPLOYEE_ID)
    assert data["worked_minutes"] == 480
    assert data["date"] == "2025-01-06"


async def test_create_overnight_entry(async_client: AsyncClient) -> None:
    resp = await async_client.post(ENTRIES_URL, json=_entry_payload(start="22:00:00", end="06:00:00"))
    assert resp.status_code == 201
    assert resp.json()["worked_minutes"] == 450


async def test_create_rejects_oversized_break(async_client: AsyncClient) -> None:
    resp = await async_client.post(ENTRIES_URL, json=_entry_payload(end="08:20:00"))
    assert resp.status_code == 422


async def test_create_rejects_negative_break(async_client: AsyncClient) -> None:
    resp = await async_client.post(ENTRIES_URL, json=_entry_payload(break_minutes=-5))
    assert resp.status_code == 422


@pytest.mark.parametrize("day", ["2024-12-31", "2026-01-02"])
async def test_create_outside_employment_is_rejected(async_client: AsyncClient, day: str) -> None:
    resp = await async_client.post(ENTRIES_URL, json=_entry_payload(day=day))
    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"


async def test_create_for_unknown_employee_returns_404(async_client: AsyncClient) -> None:
    payload = _entry_payload() | {"employee_id": str(uuid.uuid4())}
    resp = await async_client.post(ENTRIES_URL, json=payload)
    assert resp.status_code == 404


async def test_list_time_entries_with_range(async_client: AsyncClient) -> None:
    for day in ("2025-01-06", "2025-01-07", "2025-02-03"):
        await async_client.post(ENTRIES_URL, json=_entry_payload(day=day))

    data = (await async_client.get(LIST_URL)).json()
    assert data["total"] == 3
    assert [e["date"] for e in data["items"]] == ["2025-01-06", "2025-01-07", "2025-02-03"]

    january = (await async_client.get(LIST_URL, params={"from_date": "2025-01-01", "to_date": "2025-01-31"})).json()
    assert january["total"] == 2


async def test_delete_time_entry(async_client: AsyncClient, db_session: AsyncSession) -> None:
    created = (await async_client.post(ENTRIES_URL, json=_entry_payload())).json()

    resp = await async_client.delete(f"{ENTRIES_URL}/{created['id']}", params={"actor_id": str(ACTOR_ID)})
    assert resp.status_code == 204
    assert (await async_client.get(LIST_URL)).json()["total"] == 0

    entries = await list_audit_entries(db_session, AuditEntityType.TIME_ENTRY, created["id"])
    actions = sorted(a.action for a in entries)
    assert actions == ["CREATE", "DELETE"]


async def test_delete_unknown_entry_returns_404(async_client: AsyncClient) -> None:
    resp = await async_client.delete(f"{ENTRIES_URL}/{uuid.uuid4()}")
    assert resp.status_code == 404


async def test_entries_move_the_balance(
    async_client: AsyncClient,
    load_holidays: Callable[..., Awaitable[None]],
) -> None:
    await load_holidays(2025)
    url = f"/employees/{EMPLOYEE_ID}/balances/monthly/2025-01"
    before = (await async_client.get(url)).json()

    created = (await async_client.post(ENTRIES_URL, json=_entry_payload(day="2025-01-11", break_minutes=0))).json()
    during = (await async_client.get(url)).json()
    assert during["overtime_minutes"] == before["overtime_minutes"] + 510

    await async_client.delete(f"{ENTRIES_URL}/{created['id']}")
    after = (await async_client.get(url)).json()
    assert after["overtime_minutes"] == before["overtime_minutes"]
    assert after["version"] == before["version"] + 2
