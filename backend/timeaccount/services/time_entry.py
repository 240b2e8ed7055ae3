"""Recording worked shifts; every write invalidates the affected month."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeaccount.exceptions import NotFoundError, ValidationError
from timeaccount.models.enums import AuditAction, AuditEntityType
from timeaccount.models.time_entry import TimeEntry
from timeaccount.schemas.time_entry import TimeEntryListResponse, TimeEntryResponse
from timeaccount.services.audit import model_to_audit_dict, write_audit_log
from timeaccount.services.cache import invalidate_months
from timeaccount.services.employee import require_employee

if TYPE_CHECKING:
    import uuid
    from datetime import date, time

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.schemas.time_entry import CreateTimeEntryRequest

logger = logging.getLogger(__name__)

_MINUTES_PER_DAY = 24 * 60


def compute_worked_minutes(start_time: time, end_time: time, break_minutes: int) -> int:
    """Net minutes of a shift; an end at or before the start runs past midnight."""
    start = start_time.hour * 60 + start_time.minute
    end = end_time.hour * 60 + end_time.minute
    if end <= start:
        end += _MINUTES_PER_DAY
    duration = end - start
    if break_minutes < 0:
        raise ValidationError("break_minutes must not be negative")
    if break_minutes >= duration:
        raise ValidationError(f"Break of {break_minutes} minutes does not fit a {duration}-minute shift")
    return duration - break_minutes


def _build_time_entry_response(entry: TimeEntry) -> TimeEntryResponse:
    return TimeEntryResponse(
        id=entry.id,
        employee_id=entry.employee_id,
        date=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        break_minutes=entry.break_minutes,
        worked_minutes=entry.worked_minutes,
        created_at=entry.created_at,
    )


async def create_time_entry(session: AsyncSession, payload: CreateTimeEntryRequest) -> TimeEntryResponse:
    """Record a shift for an employee within their employment."""
    employee = await require_employee(payload.employee_id)
    if payload.date < employee.hire_date:
        raise ValidationError(f"Time entry on {payload.date} is before the hire date {employee.hire_date}")
    if employee.termination_date is not None and payload.date > employee.termination_date:
        raise ValidationError(f"Time entry on {payload.date} is after the termination date {employee.termination_date}")

    worked = compute_worked_minutes(payload.start_time, payload.end_time, payload.break_minutes)
    entry = TimeEntry(
        employee_id=payload.employee_id,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        break_minutes=payload.break_minutes,
        worked_minutes=worked,
    )
    session.add(entry)
    await session.flush()
    await invalidate_months(session, [entry.date], entry.employee_id)

    await write_audit_log(
        session,
        actor_id=payload.actor_id,
        entity_type=AuditEntityType.TIME_ENTRY,
        entity_id=entry.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(entry),
    )
    await session.commit()
    await session.refresh(entry)
    logger.debug("Recorded %d minutes for %s on %s", worked, entry.employee_id, entry.date)
    return _build_time_entry_response(entry)


async def list_time_entries(
    session: AsyncSession,
    employee_id: uuid.UUID,
    from_date: date | None = None,
    to_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> TimeEntryListResponse:
    """List an employee's time entries, oldest first."""
    await require_employee(employee_id)
    base_filter = [col(TimeEntry.employee_id) == employee_id]
    if from_date is not None:
        base_filter.append(col(TimeEntry.date) >= from_date)
    if to_date is not None:
        base_filter.append(col(TimeEntry.date) <= to_date)

    count_result = await session.execute(select(func.count()).select_from(TimeEntry).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(TimeEntry)
        .where(*base_filter)
        .order_by(col(TimeEntry.date), col(TimeEntry.start_time))
        .offset(offset)
        .limit(limit)
    )
    return TimeEntryListResponse(
        items=[_build_time_entry_response(e) for e in result.scalars().all()],
        total=total,
    )


async def delete_time_entry(
    session: AsyncSession,
    entry_id: uuid.UUID,
    actor_id: uuid.UUID | None = None,
) -> None:
    """Delete a time entry and invalidate its month."""
    entry = await session.get(TimeEntry, entry_id)
    if entry is None:
        raise NotFoundError("Time entry not found")

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.TIME_ENTRY,
        entity_id=entry.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(entry),
    )
    await invalidate_months(session, [entry.date], entry.employee_id)
    await session.delete(entry)
    await session.commit()
