"""Materialized monthly balances: a memoized cache of the live calculation.

A MonthlyBalance row is only trusted while it is clean and its month has
fully passed. Dirty rows, missing rows and the still-open current month are
recomputed from raw records before they are read. Each month is rebuilt in
its own transaction together with its ledger rows.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import delete, or_, select
from sqlmodel import col

from timeaccount.config import get_settings
from timeaccount.exceptions import ConsistencyError, InvalidRangeError
from timeaccount.models.monthly_balance import MonthlyBalance
from timeaccount.models.transaction import OvertimeTransaction
from timeaccount.schemas.balance import (
    BalanceAsOfResponse,
    MonthlyBalanceResponse,
    RecomputeResponse,
    SufficiencyCheckResponse,
    TransactionListResponse,
    YearlyBalanceResponse,
)
from timeaccount.services.cache import invalidate_employee
from timeaccount.services.employee import require_employee
from timeaccount.services.ledger import (
    build_transaction_drafts,
    drop_carryover_marker,
    list_transactions,
    sum_transactions_through,
    sync_month_transactions,
    upsert_carryover_marker,
)
from timeaccount.services.overtime import build_day_response, calculate_for_employee
from timeaccount.services.periods import iter_months, month_bounds, month_key, parse_month

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.clock import Clock
    from timeaccount.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)

# In-process serialization per (employee, month); SELECT ... FOR UPDATE covers
# other processes on databases that honour it. Entries vanish once no caller
# holds or awaits the lock.
_month_locks: weakref.WeakValueDictionary[tuple[uuid.UUID, str], asyncio.Lock] = weakref.WeakValueDictionary()


def _month_lock(employee_id: uuid.UUID, month: str) -> asyncio.Lock:
    key = (employee_id, month)
    lock = _month_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _month_locks[key] = lock
    return lock


def employment_end(employee: EmployeeInfo, today: date) -> date:
    """Last day that can carry balance: today, or the termination date if earlier."""
    if employee.termination_date is not None:
        return min(today, employee.termination_date)
    return today


def carries_over(employee: EmployeeInfo, year: int, today: date) -> bool:
    """Whether January 1 of year is a year boundary inside the employment so far."""
    return year > employee.hire_date.year and date(year, 1, 1) <= employment_end(employee, today)


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


async def _get_row(
    session: AsyncSession,
    employee_id: uuid.UUID,
    month: str,
    for_update: bool = False,
) -> MonthlyBalance | None:
    stmt = select(MonthlyBalance).where(
        col(MonthlyBalance.employee_id) == employee_id,
        col(MonthlyBalance.month) == month,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt.execution_options(populate_existing=True))
    return result.scalar_one_or_none()


async def _materialize(
    session: AsyncSession,
    employee: EmployeeInfo,
    month: str,
    row: MonthlyBalance | None,
    today: date,
    carryover_minutes: int | None,
) -> MonthlyBalance:
    """Recompute one month, upsert its row and rebuild its ledger rows (no commit)."""
    year, month_number = parse_month(month)
    month_start, month_end = month_bounds(month)
    calculation, inputs = await calculate_for_employee(session, employee, month_start, month_end, today)
    totals = calculation.totals

    values = {
        "target_minutes": totals.target_minutes,
        "actual_minutes": totals.actual_minutes,
        "overtime_minutes": totals.overtime_minutes,
        "carryover_minutes": carryover_minutes,
    }
    if row is None:
        row = MonthlyBalance(employee_id=employee.id, month=month, is_dirty=False, version=1, **values)
        session.add(row)
    else:
        changed = {k: v for k, v in values.items() if getattr(row, k) != v}
        if changed:
            for key, value in changed.items():
                setattr(row, key, value)
            row.version += 1
        row.is_dirty = False

    drafts = build_transaction_drafts(employee.id, calculation, inputs.corrections)
    await sync_month_transactions(session, employee.id, month, drafts)

    if month_number == 1:
        if carryover_minutes is not None:
            await upsert_carryover_marker(session, employee.id, year, carryover_minutes)
        else:
            await drop_carryover_marker(session, employee.id, year)

    await session.flush()
    return row


async def ensure_month(
    session: AsyncSession,
    employee: EmployeeInfo,
    month: str,
    clock: Clock,
) -> MonthlyBalance:
    """Return the month's row, recomputing it first if it is missing, dirty or still open.

    The recompute and its ledger rebuild are committed together; on failure
    the transaction is rolled back and the error propagates.
    """
    year, month_number = parse_month(month)
    _, month_end = month_bounds(month)
    today = clock.today()
    is_open = month_end >= today

    row = await _get_row(session, employee.id, month)
    if row is not None and not row.is_dirty and not is_open:
        if get_settings().verify_cache_on_read:
            await verify_month(session, employee, month, clock)
        return row

    carryover_minutes = None
    if month_number == 1 and carries_over(employee, year, today):
        carryover_minutes = await closing_balance(session, employee, year - 1, clock)

    async with _month_lock(employee.id, month):
        try:
            row = await _get_row(session, employee.id, month, for_update=True)
            row = await _materialize(session, employee, month, row, today, carryover_minutes)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    logger.debug("Materialized %s for %s (version %d)", month, employee.id, row.version)
    return row


async def closing_balance(session: AsyncSession, employee: EmployeeInfo, year: int, clock: Clock) -> int:
    """Balance at the end of year: its January carry-in plus the overtime of its months."""
    today = clock.today()
    first = max(date(year, 1, 1), employee.hire_date)
    last = min(date(year, 12, 31), employment_end(employee, today))
    if first > last:
        return 0

    total = 0
    for month in iter_months(first, last):
        row = await ensure_month(session, employee, month, clock)
        total += row.overtime_minutes + (row.carryover_minutes or 0)
    return total


async def verify_month(
    session: AsyncSession,
    employee: EmployeeInfo,
    month: str,
    clock: Clock,
) -> MonthlyBalance | None:
    """Compare a clean cached month against a fresh live calculation.

    Raises ConsistencyError on divergence. Missing or dirty rows have nothing
    to verify and are returned as-is.
    """
    row = await _get_row(session, employee.id, month)
    if row is None or row.is_dirty:
        return row

    year, month_number = parse_month(month)
    month_start, month_end = month_bounds(month)
    today = clock.today()
    calculation, _ = await calculate_for_employee(session, employee, month_start, month_end, today)
    totals = calculation.totals

    expected_carryover = None
    if month_number == 1 and carries_over(employee, year, today):
        expected_carryover = await closing_balance(session, employee, year - 1, clock)

    cached = (row.target_minutes, row.actual_minutes, row.overtime_minutes, row.carryover_minutes)
    live = (totals.target_minutes, totals.actual_minutes, totals.overtime_minutes, expected_carryover)
    if cached != live:
        logger.error(
            "Cached balance for %s %s diverges from live calculation: cached=%s live=%s",
            employee.id,
            month,
            cached,
            live,
        )
        raise ConsistencyError(f"Cached balance for {month} does not match the live calculation")
    return row


async def prune_outside_employment(session: AsyncSession, employee: EmployeeInfo, today: date) -> int:
    """Delete cached months and ledger rows outside [hire_date, employment end] (no commit).

    Run after the hire date moves later or the termination date moves earlier.
    Returns the number of ledger rows removed.
    """
    last_day = employment_end(employee, today)
    outside_rows = [col(MonthlyBalance.employee_id) == employee.id]
    outside_ledger = [col(OvertimeTransaction.employee_id) == employee.id]
    if employee.hire_date <= last_day:
        outside_rows.append(
            or_(
                col(MonthlyBalance.month) < month_key(employee.hire_date),
                col(MonthlyBalance.month) > month_key(last_day),
            )
        )
        outside_ledger.append(
            or_(col(OvertimeTransaction.date) < employee.hire_date, col(OvertimeTransaction.date) > last_day)
        )

    await session.execute(delete(MonthlyBalance).where(*outside_rows).execution_options(synchronize_session="fetch"))
    result = await session.execute(
        delete(OvertimeTransaction).where(*outside_ledger).execution_options(synchronize_session="fetch")
    )
    removed = result.rowcount or 0  # ty: ignore[unresolved-attribute]
    if removed:
        logger.info("Removed %d ledger rows outside the employment of %s", removed, employee.id)
    return removed


async def recompute_history(session: AsyncSession, employee_id: uuid.UUID, clock: Clock) -> RecomputeResponse:
    """Rebuild every month from hire date to today, one committed month at a time.

    All rows are marked dirty first, so an interrupted run leaves the
    remaining months dirty and the next read or rerun picks them up.
    Rows and ledger entries outside the employment are removed.
    """
    employee = await require_employee(employee_id)
    last_day = employment_end(employee, clock.today())
    months = list(iter_months(employee.hire_date, last_day)) if employee.hire_date <= last_day else []

    await invalidate_employee(session, employee_id)
    await prune_outside_employment(session, employee, clock.today())
    await session.commit()

    logger.info("Recomputing %d months for employee %s", len(months), employee_id)
    for month in months:
        await ensure_month(session, employee, month, clock)

    return RecomputeResponse(
        employee_id=employee_id,
        months_recomputed=len(months),
        first_month=months[0] if months else None,
        last_month=months[-1] if months else None,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def _build_monthly_response(row: MonthlyBalance) -> MonthlyBalanceResponse:
    return MonthlyBalanceResponse(
        employee_id=row.employee_id,
        month=row.month,
        target_minutes=row.target_minutes,
        actual_minutes=row.actual_minutes,
        overtime_minutes=row.overtime_minutes,
        carryover_minutes=row.carryover_minutes,
        version=row.version,
    )


async def get_monthly_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    month: str,
    clock: Clock,
    include_days: bool = False,
) -> MonthlyBalanceResponse:
    """Materialized month, optionally with its day-by-day breakdown."""
    employee = await require_employee(employee_id)
    row = await ensure_month(session, employee, month, clock)
    response = _build_monthly_response(row)
    if include_days:
        month_start, month_end = month_bounds(month)
        calculation, _ = await calculate_for_employee(session, employee, month_start, month_end, clock.today())
        response.days = [build_day_response(day) for day in calculation.days]
    return response


async def get_yearly_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    clock: Clock,
) -> YearlyBalanceResponse:
    """Months of a year from hire up to the current month; later months are never listed."""
    employee = await require_employee(employee_id)
    today = clock.today()
    first = max(date(year, 1, 1), employee.hire_date)
    last = min(date(year, 12, 31), employment_end(employee, today))

    rows: list[MonthlyBalance] = []
    if first <= last:
        for month in iter_months(first, last):
            rows.append(await ensure_month(session, employee, month, clock))

    carryover = (rows[0].carryover_minutes or 0) if rows else 0
    overtime = sum(r.overtime_minutes for r in rows)
    return YearlyBalanceResponse(
        employee_id=employee_id,
        year=year,
        carryover_minutes=carryover,
        target_minutes=sum(r.target_minutes for r in rows),
        actual_minutes=sum(r.actual_minutes for r in rows),
        overtime_minutes=overtime,
        balance_minutes=carryover + overtime,
        months=[_build_monthly_response(r) for r in rows],
    )


async def _ensure_through(session: AsyncSession, employee: EmployeeInfo, through: date, clock: Clock) -> None:
    """Materialize every month from hire up to the month containing through."""
    last = min(through, employment_end(employee, clock.today()))
    if employee.hire_date > last:
        return
    for month in iter_months(employee.hire_date, last):
        await ensure_month(session, employee, month, clock)


async def get_balance_as_of(
    session: AsyncSession,
    employee_id: uuid.UUID,
    as_of: date,
    clock: Clock,
) -> BalanceAsOfResponse:
    """Balance on a date as the sum of ledger rows dated on or before it."""
    employee = await require_employee(employee_id)
    await _ensure_through(session, employee, as_of, clock)
    balance = await sum_transactions_through(session, employee_id, as_of)
    return BalanceAsOfResponse(employee_id=employee_id, as_of=as_of, balance_minutes=balance)


async def get_transaction_history(
    session: AsyncSession,
    employee_id: uuid.UUID,
    clock: Clock,
    year: int | None = None,
    month: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> TransactionListResponse:
    """Ledger rows newest first, optionally for one year or one month of a year."""
    if month is not None and year is None:
        raise InvalidRangeError("A month filter needs a year")
    employee = await require_employee(employee_id)
    start = end = None
    if year is not None and month is not None:
        start, end = month_bounds(f"{year:04d}-{month:02d}")
    elif year is not None:
        start, end = date(year, 1, 1), date(year, 12, 31)

    await _ensure_through(session, employee, end or clock.today(), clock)
    return await list_transactions(session, employee_id, start, end, offset, limit)


async def check_compensation_sufficiency(
    session: AsyncSession,
    employee_id: uuid.UUID,
    requested_minutes: int,
    clock: Clock,
    min_balance_minutes: int | None = None,
) -> SufficiencyCheckResponse:
    """Would deducting requested_minutes keep today's balance at or above the floor?"""
    if min_balance_minutes is None:
        min_balance_minutes = get_settings().min_overtime_balance_minutes

    balance = await get_balance_as_of(session, employee_id, clock.today(), clock)
    remaining = balance.balance_minutes - requested_minutes
    return SufficiencyCheckResponse(
        employee_id=employee_id,
        balance_minutes=balance.balance_minutes,
        requested_minutes=requested_minutes,
        min_balance_minutes=min_balance_minutes,
        remaining_minutes=remaining,
        sufficient=remaining >= min_balance_minutes,
    )
