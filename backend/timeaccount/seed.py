"""Seed script for development data.

Run with:  python -m timeaccount.seed   (from backend/, with the API running)
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"
HEADERS = {"Content-Type": "application/json"}

ADMIN_ID = "00000000-0000-0000-0000-000000000001"

# Well-known employee UUIDs
ANNA_ID = "00000000-0000-0000-0000-000000000002"
BEN_ID = "00000000-0000-0000-0000-000000000003"

EMPLOYEES = [
    {
        "id": ANNA_ID,
        "first_name": "Anna",
        "last_name": "Schmidt",
        "hire_date": "2024-01-15",
        "weekly_hours": 40,
    },
    {
        "id": BEN_ID,
        "first_name": "Ben",
        "last_name": "Weber",
        "hire_date": "2024-06-01",
        "weekly_hours": 14,
        # Part-time: Monday 8h, Wednesday 6h
        "work_schedule": {"monday": 8, "wednesday": 6},
    },
]

# (start, end, break minutes) per weekday, Monday first; None = day off
ANNA_WEEK = [
    ("08:00", "17:00", 45),
    ("08:30", "17:00", 30),
    ("08:00", "16:30", 30),
    ("09:00", "18:30", 60),
    ("08:00", "14:00", 0),
    None,
    None,
]
BEN_WEEK = [("09:00", "17:30", 30), None, ("10:00", "16:00", 0), None, None, None, None]


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict | None, label: str) -> dict | None:
    resp = await client.post(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _safe_put(client: httpx.AsyncClient, url: str, json: dict, label: str) -> dict | None:
    resp = await client.put(url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_holidays(client: httpx.AsyncClient, today: date) -> None:
    print("\n--- Loading federal holidays ---")
    for year in range(2024, today.year + 1):
        await _safe_post(client, f"{BASE_URL}/holidays/years/{year}/federal", None, f"Holidays {year}")


async def seed_employees(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding employees ---")
    for emp in EMPLOYEES:
        body = {k: v for k, v in emp.items() if k != "id"}
        await _safe_put(client, f"{BASE_URL}/employees/{emp['id']}", body, f"{emp['first_name']} {emp['last_name']}")


async def seed_time_entries(client: httpx.AsyncClient, today: date) -> None:
    print("\n--- Seeding time entries (last two weeks) ---")
    for employee_id, week in ((ANNA_ID, ANNA_WEEK), (BEN_ID, BEN_WEEK)):
        for offset in range(14, 0, -1):
            day = today - timedelta(days=offset)
            shift = week[day.weekday()]
            if shift is None:
                continue
            start, end, break_minutes = shift
            await _safe_post(
                client,
                f"{BASE_URL}/time-entries",
                {
                    "employee_id": employee_id,
                    "date": day.isoformat(),
                    "start_time": start,
                    "end_time": end,
                    "break_minutes": break_minutes,
                    "actor_id": ADMIN_ID,
                },
                f"Shift {employee_id[-2:]} {day}",
            )


async def seed_absences(client: httpx.AsyncClient, today: date) -> None:
    print("\n--- Seeding absences ---")
    monday = today - timedelta(days=today.weekday()) + timedelta(days=7)
    result = await _safe_post(
        client,
        f"{BASE_URL}/absences",
        {
            "employee_id": ANNA_ID,
            "type": "vacation",
            "start_date": monday.isoformat(),
            "end_date": (monday + timedelta(days=4)).isoformat(),
            "reason": "Family trip",
            "actor_id": ANNA_ID,
        },
        "Absence: Anna vacation next week",
    )
    if result:
        await _safe_post(
            client,
            f"{BASE_URL}/absences/{result['id']}/approve",
            {"actor_id": ADMIN_ID},
            "Approve Anna's vacation",
        )


async def seed_corrections(client: httpx.AsyncClient, today: date) -> None:
    print("\n--- Seeding corrections ---")
    await _safe_post(
        client,
        f"{BASE_URL}/corrections",
        {
            "employee_id": BEN_ID,
            "date": (today - timedelta(days=3)).isoformat(),
            "amount_minutes": 90,
            "reason": "Trade fair setup not recorded",
            "created_by": ADMIN_ID,
        },
        "Correction: Ben +1.5h",
    )


async def print_balances(client: httpx.AsyncClient, today: date) -> None:
    print("\n--- Balances ---")
    for emp in EMPLOYEES:
        resp = await client.get(f"{BASE_URL}/employees/{emp['id']}/balances/yearly/{today.year}")
        if resp.status_code != 200:
            print(f"  [ERROR] {emp['first_name']}: {resp.status_code} {resp.text[:200]}")
            continue
        body = resp.json()
        hours = body["balance_minutes"] / 60
        print(f"  {emp['first_name']}: {hours:+.2f}h (carryover {body['carryover_minutes']} min)")


async def main() -> None:
    print("=" * 60)
    print("  Time Account: Development Seed Script")
    print("=" * 60)

    today = date.today()
    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running (uvicorn timeaccount.main:app)")
            sys.exit(1)

        await seed_holidays(client, today)
        await seed_employees(client)
        await seed_time_entries(client, today)
        await seed_absences(client, today)
        await seed_corrections(client, today)
        await print_balances(client, today)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
