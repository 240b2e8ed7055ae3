"""Manual corrections of the time account. Corrections are immutable once written."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeaccount.exceptions import ValidationError
from timeaccount.models.correction import OvertimeCorrection
from timeaccount.models.enums import AuditAction, AuditEntityType
from timeaccount.schemas.correction import CorrectionListResponse, CorrectionResponse
from timeaccount.services.audit import model_to_audit_dict, write_audit_log
from timeaccount.services.cache import invalidate_months
from timeaccount.services.employee import require_employee

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.schemas.correction import CreateCorrectionRequest


def _build_correction_response(correction: OvertimeCorrection) -> CorrectionResponse:
    return CorrectionResponse(
        id=correction.id,
        employee_id=correction.employee_id,
        date=correction.date,
        amount_minutes=correction.amount_minutes,
        reason=correction.reason,
        created_by=correction.created_by,
        created_at=correction.created_at,
    )


async def create_correction(session: AsyncSession, payload: CreateCorrectionRequest) -> CorrectionResponse:
    """Add a signed correction on a date within the employment."""
    reason = payload.reason.strip()
    if not reason:
        raise ValidationError("A correction needs a reason")
    if payload.amount_minutes == 0:
        raise ValidationError("A correction must change the balance")

    employee = await require_employee(payload.employee_id)
    if payload.date < employee.hire_date:
        raise ValidationError(f"Correction on {payload.date} is before the hire date {employee.hire_date}")
    if employee.termination_date is not None and payload.date > employee.termination_date:
        raise ValidationError(f"Correction on {payload.date} is after the termination date {employee.termination_date}")

    correction = OvertimeCorrection(
        employee_id=payload.employee_id,
        date=payload.date,
        amount_minutes=payload.amount_minutes,
        reason=reason,
        created_by=payload.created_by,
    )
    session.add(correction)
    await session.flush()
    await invalidate_months(session, [correction.date], correction.employee_id)

    await write_audit_log(
        session,
        actor_id=payload.created_by,
        entity_type=AuditEntityType.CORRECTION,
        entity_id=correction.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(correction),
    )
    await session.commit()
    await session.refresh(correction)
    return _build_correction_response(correction)


async def list_corrections(
    session: AsyncSession,
    employee_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> CorrectionListResponse:
    """List an employee's corrections, newest date first."""
    await require_employee(employee_id)
    base_filter = [col(OvertimeCorrection.employee_id) == employee_id]

    count_result = await session.execute(select(func.count()).select_from(OvertimeCorrection).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(OvertimeCorrection)
        .where(*base_filter)
        .order_by(col(OvertimeCorrection.date).desc(), col(OvertimeCorrection.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    return CorrectionListResponse(
        items=[_build_correction_response(c) for c in result.scalars().all()],
        total=total,
    )
