"""Year-boundary carryover of the time-account balance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from timeaccount.exceptions import AppError, InvalidRangeError
from timeaccount.models.enums import AuditAction, AuditEntityType, TransactionType
from timeaccount.models.transaction import OvertimeTransaction
from timeaccount.schemas.balance import (
    CarryoverHistoryItem,
    CarryoverHistoryResponse,
    RolloverPreviewItem,
    RolloverPreviewResponse,
    RolloverResponse,
    RolloverRunHistoryItem,
    RolloverRunHistoryResponse,
)
from timeaccount.services.audit import list_audit_entries, write_audit_log
from timeaccount.services.employee import get_employee_service, require_employee
from timeaccount.services.ledger import carryover_marker_id
from timeaccount.services.materializer import carries_over, ensure_month
from timeaccount.services.overtime import calculate_for_employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.clock import Clock
    from timeaccount.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)


@dataclass
class RolloverRunResult:
    """Result of a rollover run over all employees."""

    year: int
    carried: int = 0
    already_done: int = 0
    skipped: int = 0
    errors: int = 0


async def ensure_year_rollover(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    clock: Clock,
) -> RolloverResponse:
    """Carry the closing balance of year - 1 into January of year.

    The carryover lives on the January row and in a single zero-amount
    CARRYOVER marker; running this again never adds a second marker or
    doubles the amount.
    """
    employee = await require_employee(employee_id)
    today = clock.today()
    if year > today.year:
        raise InvalidRangeError(f"Cannot roll over into future year {year}")

    if not carries_over(employee, year, today):
        return RolloverResponse(employee_id=employee_id, year=year, carryover_minutes=0, marker_id=None, created=False)

    marker_id = carryover_marker_id(employee_id, year)
    existed = await session.get(OvertimeTransaction, marker_id) is not None

    january = await ensure_month(session, employee, f"{year:04d}-01", clock)
    carryover = january.carryover_minutes or 0
    if not existed:
        logger.info("Carried %d minutes into %d for employee %s", carryover, year, employee_id)

    return RolloverResponse(
        employee_id=employee_id,
        year=year,
        carryover_minutes=carryover,
        marker_id=marker_id,
        created=not existed,
    )


async def run_year_rollover(
    session: AsyncSession,
    clock: Clock,
    year: int | None = None,
    actor_id: uuid.UUID | None = None,
) -> RolloverRunResult:
    """Roll every known employee over into year (default: the current year).

    Safe to run repeatedly; one employee failing does not stop the others.
    Each run is recorded in the audit log; actor_id is None for the worker.
    """
    if year is None:
        year = clock.today().year
    if year > clock.today().year:
        raise InvalidRangeError(f"Cannot roll over into future year {year}")

    result = RolloverRunResult(year=year)
    for employee in await get_employee_service().list_employees():
        try:
            outcome = await ensure_year_rollover(session, employee.id, year, clock)
        except Exception:
            await session.rollback()
            logger.exception("Rollover into %d failed for employee %s", year, employee.id)
            result.errors += 1
            continue

        if outcome.marker_id is None:
            result.skipped += 1
        elif outcome.created:
            result.carried += 1
        else:
            result.already_done += 1

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.ROLLOVER,
        entity_id=str(year),
        action=AuditAction.RUN,
        after_json={
            "carried": result.carried,
            "already_done": result.already_done,
            "skipped": result.skipped,
            "errors": result.errors,
        },
    )
    await session.commit()
    return result


async def _preview_employee(
    session: AsyncSession,
    employee: EmployeeInfo,
    year: int,
    today: date,
) -> RolloverPreviewItem:
    warnings: list[str] = []
    carryover: int | None = None

    if employee.hire_date.year >= year:
        warnings.append(f"Hired in {employee.hire_date.year}: no carryover into {year}")
    elif employee.termination_date is not None and employee.termination_date < date(year, 1, 1):
        warnings.append(f"Terminated on {employee.termination_date.isoformat()}: no carryover into {year}")
    else:
        # The closing balance of year - 1 is the live cumulative overtime from hire.
        try:
            calculation, _ = await calculate_for_employee(session, employee, None, date(year - 1, 12, 31), today)
        except AppError as exc:
            warnings.append(f"Could not calculate overtime balance: {exc.message}")
        else:
            carryover = calculation.totals.overtime_minutes

    marker = await session.get(OvertimeTransaction, carryover_marker_id(employee.id, year))
    return RolloverPreviewItem(
        employee_id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        hire_date=employee.hire_date,
        carryover_minutes=carryover,
        already_carried=marker is not None,
        warnings=warnings,
    )


async def preview_year_rollover(session: AsyncSession, clock: Clock, year: int) -> RolloverPreviewResponse:
    """Show what a rollover into year would carry for every employee, without writing anything.

    The coming year can be previewed before January 1; its previous year is
    then still open and the figures reflect today.
    """
    today = clock.today()
    if year > today.year + 1:
        raise InvalidRangeError(f"Cannot preview a rollover into {year}")

    items = [
        await _preview_employee(session, employee, year, today)
        for employee in await get_employee_service().list_employees()
    ]
    logger.info("Previewed rollover into %d for %d employees", year, len(items))
    return RolloverPreviewResponse(
        year=year,
        previous_year=year - 1,
        total_carryover_minutes=sum(i.carryover_minutes or 0 for i in items),
        items=items,
    )


async def get_carryover_history(
    session: AsyncSession,
    employee_id: uuid.UUID,
    clock: Clock,
) -> CarryoverHistoryResponse:
    """Every year boundary the employee's balance was carried across, newest first."""
    employee = await require_employee(employee_id)
    result = await session.execute(
        select(col(OvertimeTransaction.date)).where(
            col(OvertimeTransaction.employee_id) == employee_id,
            col(OvertimeTransaction.transaction_type) == TransactionType.CARRYOVER.value,
        )
    )
    years = sorted({day.year for day in result.scalars().all()}, reverse=True)

    items: list[CarryoverHistoryItem] = []
    for year in years:
        # Refresh January first so the figure matches the current inputs.
        january = await ensure_month(session, employee, f"{year:04d}-01", clock)
        marker = await session.get(OvertimeTransaction, carryover_marker_id(employee_id, year))
        if january.carryover_minutes is None or marker is None:
            continue
        items.append(
            CarryoverHistoryItem(
                year=year,
                carryover_minutes=january.carryover_minutes,
                description=marker.description,
                transaction_id=marker.id,
            )
        )
    return CarryoverHistoryResponse(employee_id=employee_id, items=items)


async def get_rollover_run_history(session: AsyncSession, limit: int = 50) -> RolloverRunHistoryResponse:
    """Company-wide rollover runs from the audit log, newest first."""
    entries = list(reversed(await list_audit_entries(session, AuditEntityType.ROLLOVER)))
    items = []
    for entry in entries[:limit]:
        counts = entry.after_json or {}
        items.append(
            RolloverRunHistoryItem(
                year=int(entry.entity_id),
                executed_at=entry.created_at,
                executed_by=entry.actor_id,
                carried=counts.get("carried", 0),
                already_done=counts.get("already_done", 0),
                skipped=counts.get("skipped", 0),
                errors=counts.get("errors", 0),
                success=counts.get("errors", 0) == 0,
            )
        )
    return RolloverRunHistoryResponse(items=items, total=len(entries))
