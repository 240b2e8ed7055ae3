"""Loading raw records and running the live overtime calculation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeaccount.exceptions import InvalidRangeError
from timeaccount.models.absence import AbsenceRequest
from timeaccount.models.correction import OvertimeCorrection
from timeaccount.models.enums import AbsenceStatus
from timeaccount.models.time_entry import TimeEntry
from timeaccount.schemas.balance import DayResponse, LiveOvertimeResponse, PeriodResponse
from timeaccount.services.calculator import calculate_overtime
from timeaccount.services.employee import require_employee
from timeaccount.services.holiday import HolidayCalendar, load_holiday_calendar
from timeaccount.services.schedule import effective_range

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.clock import Clock
    from timeaccount.services.calculator import DayResult, OvertimeCalculation, PeriodTotals
    from timeaccount.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)


@dataclass
class CalculationInputs:
    """Raw records for one employee and range, as read from the database."""

    calendar: HolidayCalendar
    worked_by_day: dict[date, int]
    absences: list[AbsenceRequest]
    corrections: list[OvertimeCorrection]


async def load_calculation_inputs(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start: date,
    end: date,
) -> CalculationInputs:
    """Read time entries, approved absences, corrections and holidays for [start, end]."""
    calendar = await load_holiday_calendar(session, start, end)

    worked_result = await session.execute(
        select(col(TimeEntry.date), func.sum(col(TimeEntry.worked_minutes)))
        .where(
            col(TimeEntry.employee_id) == employee_id,
            col(TimeEntry.date) >= start,
            col(TimeEntry.date) <= end,
        )
        .group_by(col(TimeEntry.date))
    )
    worked_by_day = {row[0]: int(row[1] or 0) for row in worked_result.all()}

    absence_result = await session.execute(
        select(AbsenceRequest)
        .where(
            col(AbsenceRequest.employee_id) == employee_id,
            col(AbsenceRequest.status) == AbsenceStatus.APPROVED.value,
            col(AbsenceRequest.start_date) <= end,
            col(AbsenceRequest.end_date) >= start,
        )
        .order_by(col(AbsenceRequest.start_date))
    )

    correction_result = await session.execute(
        select(OvertimeCorrection)
        .where(
            col(OvertimeCorrection.employee_id) == employee_id,
            col(OvertimeCorrection.date) >= start,
            col(OvertimeCorrection.date) <= end,
        )
        .order_by(col(OvertimeCorrection.date), col(OvertimeCorrection.id))
    )

    return CalculationInputs(
        calendar=calendar,
        worked_by_day=worked_by_day,
        absences=list(absence_result.scalars().all()),
        corrections=list(correction_result.scalars().all()),
    )


async def calculate_for_employee(
    session: AsyncSession,
    employee: EmployeeInfo,
    start: date | None,
    end: date | None,
    today: date,
) -> tuple[OvertimeCalculation, CalculationInputs]:
    """Load inputs for the employment-clamped range and calculate it."""
    bounds = effective_range(employee, start, end, today)
    if bounds is None:
        empty = CalculationInputs(HolidayCalendar([], []), {}, [], [])
        return calculate_overtime(employee, empty.calendar, {}, [], [], start, end, today), empty

    inputs = await load_calculation_inputs(session, employee.id, *bounds)
    calculation = calculate_overtime(
        employee,
        inputs.calendar,
        inputs.worked_by_day,
        inputs.absences,
        inputs.corrections,
        bounds[0],
        bounds[1],
        today,
    )
    return calculation, inputs


async def calculate_live_overtime(
    session: AsyncSession,
    employee_id: uuid.UUID,
    clock: Clock,
    from_date: date | None = None,
    to_date: date | None = None,
) -> OvertimeCalculation:
    """Recompute overtime from raw records; defaults to the whole employment so far."""
    if from_date is not None and to_date is not None and from_date > to_date:
        raise InvalidRangeError(f"from_date {from_date} is after to_date {to_date}")

    employee = await require_employee(employee_id)
    calculation, _ = await calculate_for_employee(session, employee, from_date, to_date, clock.today())
    logger.debug(
        "Live overtime for %s %s..%s: %d min over %d days",
        employee_id,
        calculation.start,
        calculation.end,
        calculation.totals.overtime_minutes,
        len(calculation.days),
    )
    return calculation


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------


def build_day_response(day: DayResult) -> DayResponse:
    """Map a calculated day to its response schema."""
    return DayResponse(
        date=day.date,
        target_minutes=day.target_minutes,
        worked_minutes=day.worked_minutes,
        credit_minutes=day.credit_minutes,
        correction_minutes=day.correction_minutes,
        actual_minutes=day.actual_minutes,
        overtime_minutes=day.overtime_minutes,
        cumulative_minutes=day.cumulative_minutes,
        is_working_day=day.is_working_day,
        holiday_name=day.holiday_name,
        absence_type=day.absence.absence_type if day.absence else None,
    )


def build_period_response(period: PeriodTotals) -> PeriodResponse:
    return PeriodResponse(
        key=period.key,
        target_minutes=period.target_minutes,
        actual_minutes=period.actual_minutes,
        overtime_minutes=period.overtime_minutes,
    )


def build_live_response(employee_id: uuid.UUID, calculation: OvertimeCalculation) -> LiveOvertimeResponse:
    return LiveOvertimeResponse(
        employee_id=employee_id,
        start_date=calculation.start,
        end_date=calculation.end,
        days=[build_day_response(day) for day in calculation.days],
        weeks=[build_period_response(week) for week in calculation.weeks],
        months=[build_period_response(month) for month in calculation.months],
        totals=build_period_response(calculation.totals),
    )
