# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from timeaccount.clock import ClockDep
from timeaccount.db import SessionDep
from timeaccount.schemas.balance import (
    BalanceAsOfResponse,
    CarryoverHistoryResponse,
    LiveOvertimeResponse,
    MonthlyBalanceResponse,
    RecomputeResponse,
    RolloverPreviewResponse,
    RolloverResponse,
    RolloverRunHistoryResponse,
    RolloverRunResponse,
    SufficiencyCheckRequest,
    SufficiencyCheckResponse,
    TransactionListResponse,
    YearlyBalanceResponse,
)
from timeaccount.services import materializer, rollover
from timeaccount.services.overtime import build_live_response, calculate_live_overtime

employee_balance_router = APIRouter(prefix="/employees/{employee_id}", tags=["balances"])
rollover_router = APIRouter(prefix="/rollover", tags=["balances"])


@employee_balance_router.get("/overtime/live", response_model=LiveOvertimeResponse)
async def get_live_overtime(
    employee_id: uuid.UUID,
    session: SessionDep,
    clock: ClockDep,
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
) -> LiveOvertimeResponse:
    """Recompute overtime day by day from raw records; defaults to hire date through today."""
    calculation = await calculate_live_overtime(session, employee_id, clock, from_date, to_date)
    return build_live_response(employee_id, calculation)


@employee_balance_router.get("/balances/monthly/{month}", response_model=MonthlyBalanceResponse)
async def get_monthly_balance(
    employee_id: uuid.UUID,
    month: str,
    session: SessionDep,
    clock: ClockDep,
    include_days: bool = Query(default=False),
) -> MonthlyBalanceResponse:
    """Get the materialized balance of a month (YYYY-MM)."""
    return await materializer.get_monthly_balance(session, employee_id, month, clock, include_days)


@employee_balance_router.get("/balances/yearly/{year}", response_model=YearlyBalanceResponse)
async def get_yearly_balance(
    employee_id: uuid.UUID,
    year: int,
    session: SessionDep,
    clock: ClockDep,
) -> YearlyBalanceResponse:
    """Get the months of a year up to the current month."""
    return await materializer.get_yearly_balance(session, employee_id, year, clock)


@employee_balance_router.get("/balances/as-of/{as_of}", response_model=BalanceAsOfResponse)
async def get_balance_as_of(
    employee_id: uuid.UUID,
    as_of: date,
    session: SessionDep,
    clock: ClockDep,
) -> BalanceAsOfResponse:
    """Get the balance on a date from the ledger."""
    return await materializer.get_balance_as_of(session, employee_id, as_of, clock)


@employee_balance_router.post("/balances/sufficiency", response_model=SufficiencyCheckResponse)
async def check_sufficiency(
    employee_id: uuid.UUID,
    payload: SufficiencyCheckRequest,
    session: SessionDep,
    clock: ClockDep,
) -> SufficiencyCheckResponse:
    """Check whether an overtime compensation of requested_minutes keeps the balance above the floor."""
    return await materializer.check_compensation_sufficiency(
        session, employee_id, payload.requested_minutes, clock, payload.min_balance_minutes
    )


@employee_balance_router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    employee_id: uuid.UUID,
    session: SessionDep,
    clock: ClockDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> TransactionListResponse:
    """Get ledger rows newest first, optionally for a year or a month of a year."""
    return await materializer.get_transaction_history(session, employee_id, clock, year, month, offset, limit)


@employee_balance_router.post("/rollover/{year}", response_model=RolloverResponse)
async def run_rollover(
    employee_id: uuid.UUID,
    year: int,
    session: SessionDep,
    clock: ClockDep,
) -> RolloverResponse:
    """Carry the previous year's closing balance into the year."""
    return await rollover.ensure_year_rollover(session, employee_id, year, clock)


@employee_balance_router.get("/rollover/history", response_model=CarryoverHistoryResponse)
async def get_carryover_history(
    employee_id: uuid.UUID,
    session: SessionDep,
    clock: ClockDep,
) -> CarryoverHistoryResponse:
    """List the year boundaries the balance was carried across, newest first."""
    return await rollover.get_carryover_history(session, employee_id, clock)


@employee_balance_router.post("/recompute", response_model=RecomputeResponse)
async def recompute(
    employee_id: uuid.UUID,
    session: SessionDep,
    clock: ClockDep,
) -> RecomputeResponse:
    """Rebuild every cached month of the employee from raw records."""
    return await materializer.recompute_history(session, employee_id, clock)


@rollover_router.post("/{year}", response_model=RolloverRunResponse)
async def run_rollover_for_all(
    year: int,
    session: SessionDep,
    clock: ClockDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> RolloverRunResponse:
    """Carry every employee's previous-year balance into the year."""
    result = await rollover.run_year_rollover(session, clock, year, actor_id)
    return RolloverRunResponse(
        year=result.year,
        carried=result.carried,
        already_done=result.already_done,
        skipped=result.skipped,
        errors=result.errors,
    )


@rollover_router.get("/history", response_model=RolloverRunHistoryResponse)
async def get_rollover_history(
    session: SessionDep,
    limit: int = Query(default=50, ge=1, le=100),
) -> RolloverRunHistoryResponse:
    """List past company-wide rollover runs, newest first."""
    return await rollover.get_rollover_run_history(session, limit)


@rollover_router.get("/{year}/preview", response_model=RolloverPreviewResponse)
async def preview_rollover(
    year: int,
    session: SessionDep,
    clock: ClockDep,
) -> RolloverPreviewResponse:
    """Show what a rollover into the year would carry, without writing anything."""
    return await rollover.preview_year_rollover(session, clock, year)
