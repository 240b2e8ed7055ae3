"""Absence requests and their approval workflow.

Only approved absences reach the calculation, so approving or revoking one
invalidates every month it covers. Overlapping approvals are refused here,
which keeps the per-day credit unambiguous.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeaccount.exceptions import ConflictError, InsufficientBalanceError, InvalidRangeError, NotFoundError
from timeaccount.models.absence import AbsenceRequest
from timeaccount.models.base import now_utc
from timeaccount.models.enums import AbsenceStatus, AbsenceType, AuditAction, AuditEntityType
from timeaccount.schemas.absence import AbsenceListResponse, AbsenceResponse
from timeaccount.services.absence_credit import count_absence_minutes
from timeaccount.services.audit import model_to_audit_dict, write_audit_log
from timeaccount.services.cache import invalidate_range
from timeaccount.services.employee import require_employee
from timeaccount.services.holiday import load_holiday_calendar
from timeaccount.services.materializer import check_compensation_sufficiency

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.clock import Clock
    from timeaccount.schemas.absence import CreateAbsenceRequest, DecideAbsenceRequest

logger = logging.getLogger(__name__)


def _build_absence_response(absence: AbsenceRequest) -> AbsenceResponse:
    return AbsenceResponse(
        id=absence.id,
        employee_id=absence.employee_id,
        type=AbsenceType(absence.type),
        start_date=absence.start_date,
        end_date=absence.end_date,
        status=AbsenceStatus(absence.status),
        reason=absence.reason,
        decided_by=absence.decided_by,
        decided_at=absence.decided_at,
        created_at=absence.created_at,
    )


async def _get_absence(session: AsyncSession, absence_id: uuid.UUID) -> AbsenceRequest:
    absence = await session.get(AbsenceRequest, absence_id)
    if absence is None:
        raise NotFoundError("Absence request not found")
    return absence


async def create_absence(session: AsyncSession, payload: CreateAbsenceRequest) -> AbsenceResponse:
    """File a pending absence request."""
    if payload.end_date < payload.start_date:
        raise InvalidRangeError(f"end_date {payload.end_date} is before start_date {payload.start_date}")
    await require_employee(payload.employee_id)

    absence = AbsenceRequest(
        employee_id=payload.employee_id,
        type=payload.type.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=AbsenceStatus.PENDING.value,
        reason=payload.reason,
    )
    session.add(absence)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=payload.actor_id,
        entity_type=AuditEntityType.ABSENCE,
        entity_id=absence.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(absence),
    )
    await session.commit()
    await session.refresh(absence)
    return _build_absence_response(absence)


async def list_absences(
    session: AsyncSession,
    employee_id: uuid.UUID,
    status: AbsenceStatus | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AbsenceListResponse:
    """List an employee's absence requests, most recent start first."""
    await require_employee(employee_id)
    base_filter = [col(AbsenceRequest.employee_id) == employee_id]
    if status is not None:
        base_filter.append(col(AbsenceRequest.status) == status.value)

    count_result = await session.execute(select(func.count()).select_from(AbsenceRequest).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AbsenceRequest)
        .where(*base_filter)
        .order_by(col(AbsenceRequest.start_date).desc())
        .offset(offset)
        .limit(limit)
    )
    return AbsenceListResponse(
        items=[_build_absence_response(a) for a in result.scalars().all()],
        total=total,
    )


async def _check_no_overlap(session: AsyncSession, absence: AbsenceRequest) -> None:
    result = await session.execute(
        select(AbsenceRequest).where(
            col(AbsenceRequest.employee_id) == absence.employee_id,
            col(AbsenceRequest.status) == AbsenceStatus.APPROVED.value,
            col(AbsenceRequest.id) != absence.id,
            col(AbsenceRequest.start_date) <= absence.end_date,
            col(AbsenceRequest.end_date) >= absence.start_date,
        )
    )
    overlapping = result.scalars().first()
    if overlapping is not None:
        raise ConflictError(
            f"Absence overlaps approved absence {overlapping.id} "
            f"({overlapping.start_date} to {overlapping.end_date})"
        )


async def approve_absence(
    session: AsyncSession,
    absence_id: uuid.UUID,
    payload: DecideAbsenceRequest,
    clock: Clock,
) -> AbsenceResponse:
    """Approve a pending absence.

    Overtime compensation is only approved while the balance left after
    deducting the covered working time stays at or above the floor.
    """
    absence = await _get_absence(session, absence_id)
    if absence.status != AbsenceStatus.PENDING.value:
        raise ConflictError(f"Cannot approve an absence in status {absence.status}")
    employee = await require_employee(absence.employee_id)
    await _check_no_overlap(session, absence)

    if absence.type == AbsenceType.OVERTIME_COMP.value:
        calendar = await load_holiday_calendar(session, absence.start_date, absence.end_date)
        _, requested = count_absence_minutes(employee, absence.start_date, absence.end_date, calendar)
        check = await check_compensation_sufficiency(
            session, absence.employee_id, requested, clock, payload.min_balance_minutes
        )
        if not check.sufficient:
            raise InsufficientBalanceError(
                f"Compensating {requested} minutes would leave {check.remaining_minutes} minutes, "
                f"below the floor of {check.min_balance_minutes}"
            )

    before = model_to_audit_dict(absence)
    absence.status = AbsenceStatus.APPROVED.value
    absence.decided_by = payload.actor_id
    absence.decided_at = now_utc()
    await session.flush()
    await invalidate_range(session, absence.start_date, absence.end_date, absence.employee_id)

    await write_audit_log(
        session,
        actor_id=payload.actor_id,
        entity_type=AuditEntityType.ABSENCE,
        entity_id=absence.id,
        action=AuditAction.APPROVE,
        before_json=before,
        after_json=model_to_audit_dict(absence),
    )
    await session.commit()
    await session.refresh(absence)
    logger.info("Approved %s absence %s for %s", absence.type, absence.id, absence.employee_id)
    return _build_absence_response(absence)


async def reject_absence(
    session: AsyncSession,
    absence_id: uuid.UUID,
    payload: DecideAbsenceRequest,
) -> AbsenceResponse:
    """Reject a pending absence or revoke an approved one."""
    absence = await _get_absence(session, absence_id)
    if absence.status == AbsenceStatus.REJECTED.value:
        raise ConflictError("Absence is already rejected")

    was_approved = absence.status == AbsenceStatus.APPROVED.value
    before = model_to_audit_dict(absence)
    absence.status = AbsenceStatus.REJECTED.value
    absence.decided_by = payload.actor_id
    absence.decided_at = now_utc()
    await session.flush()
    if was_approved:
        await invalidate_range(session, absence.start_date, absence.end_date, absence.employee_id)

    await write_audit_log(
        session,
        actor_id=payload.actor_id,
        entity_type=AuditEntityType.ABSENCE,
        entity_id=absence.id,
        action=AuditAction.REJECT,
        before_json=before,
        after_json=model_to_audit_dict(absence),
    )
    await session.commit()
    await session.refresh(absence)
    return _build_absence_response(absence)
