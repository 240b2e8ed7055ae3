"""Per-day credit decisions for approved absences (pure, no DB)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

from timeaccount.models.enums import AbsenceStatus, AbsenceType, TransactionType
from timeaccount.services.schedule import iter_days, resolve_target_minutes

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import date

    from timeaccount.models.absence import AbsenceRequest
    from timeaccount.services.employee import EmployeeInfo
    from timeaccount.services.holiday import HolidayCalendar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AbsenceCredit:
    """How one absence affects one working day."""

    absence_id: uuid.UUID
    absence_type: AbsenceType
    scheduled_minutes: int
    target_minutes: int  # after unpaid zeroing
    credit_minutes: int
    transaction_type: TransactionType


def credit_policy(absence_type: AbsenceType, scheduled_minutes: int) -> tuple[int, int, TransactionType]:
    """Return (target, credit, transaction type) for a working day covered by an absence."""
    match absence_type:
        case AbsenceType.UNPAID:
            return 0, 0, TransactionType.UNPAID_ADJUSTMENT
        case AbsenceType.VACATION:
            return scheduled_minutes, scheduled_minutes, TransactionType.VACATION_CREDIT
        case AbsenceType.SICK:
            return scheduled_minutes, scheduled_minutes, TransactionType.SICK_CREDIT
        case AbsenceType.OVERTIME_COMP:
            return scheduled_minutes, scheduled_minutes, TransactionType.COMPENSATION
        case AbsenceType.SPECIAL:
            return scheduled_minutes, scheduled_minutes, TransactionType.SPECIAL_CREDIT
        case _:
            assert_never(absence_type)


def resolve_absence_credits(
    employee: EmployeeInfo,
    absences: Iterable[AbsenceRequest],
    start: date,
    end: date,
    calendar: HolidayCalendar,
) -> dict[date, AbsenceCredit]:
    """Credit decision for every working day in [start, end] covered by an approved absence.

    Holidays and zero-target days are skipped. When two approved absences
    cover the same day the one starting first (then lowest id) is kept.
    """
    approved = sorted(
        (a for a in absences if a.status == AbsenceStatus.APPROVED),
        key=lambda a: (a.start_date, str(a.id)),
    )

    credits: dict[date, AbsenceCredit] = {}
    for absence in approved:
        absence_type = AbsenceType(absence.type)
        for day in iter_days(max(absence.start_date, start), min(absence.end_date, end)):
            if calendar.is_holiday(day):
                continue
            scheduled = resolve_target_minutes(employee, day)
            if scheduled <= 0:
                continue
            if day in credits:
                logger.warning(
                    "Overlapping approved absences on %s for employee %s: keeping %s, ignoring %s",
                    day,
                    employee.id,
                    credits[day].absence_id,
                    absence.id,
                )
                continue
            target, credit, transaction_type = credit_policy(absence_type, scheduled)
            credits[day] = AbsenceCredit(
                absence_id=absence.id,
                absence_type=absence_type,
                scheduled_minutes=scheduled,
                target_minutes=target,
                credit_minutes=credit,
                transaction_type=transaction_type,
            )
    return credits


def count_absence_minutes(
    employee: EmployeeInfo,
    start: date,
    end: date,
    calendar: HolidayCalendar,
) -> tuple[int, int]:
    """Return (working days, scheduled minutes) a prospective absence would cover."""
    days = 0
    minutes = 0
    for day in iter_days(start, end):
        if calendar.is_holiday(day):
            continue
        scheduled = resolve_target_minutes(employee, day)
        if scheduled <= 0:
            continue
        days += 1
        minutes += scheduled
    return days, minutes
