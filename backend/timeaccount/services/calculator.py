"""Live overtime calculation: the single source of truth for the time account.

Everything in this module is pure. Given the same employee, holiday
calendar, raw records and "today", it always returns the same result; the
materialized monthly cache is checked against it.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from timeaccount.services.absence_credit import AbsenceCredit, resolve_absence_credits
from timeaccount.services.periods import iso_week_key, month_key
from timeaccount.services.schedule import effective_range, enumerate_working_days, resolve_target_minutes

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from datetime import date

    from timeaccount.models.absence import AbsenceRequest
    from timeaccount.models.correction import OvertimeCorrection
    from timeaccount.services.employee import EmployeeInfo
    from timeaccount.services.holiday import HolidayCalendar


@dataclass(frozen=True)
class DayResult:
    """One calendar day of the ledger."""

    date: date
    target_minutes: int
    worked_minutes: int
    credit_minutes: int
    correction_minutes: int
    is_working_day: bool
    holiday_name: str | None = None
    absence: AbsenceCredit | None = None
    cumulative_minutes: int = 0  # running balance from the start of the range

    @property
    def actual_minutes(self) -> int:
        return self.worked_minutes + self.credit_minutes + self.correction_minutes

    @property
    def overtime_minutes(self) -> int:
        return self.actual_minutes - self.target_minutes


@dataclass
class PeriodTotals:
    """Summed figures for a week, a month or the whole range."""

    key: str
    target_minutes: int = 0
    actual_minutes: int = 0
    overtime_minutes: int = 0
    worked_minutes: int = 0
    credit_minutes: int = 0
    correction_minutes: int = 0

    def add(self, day: DayResult) -> None:
        self.target_minutes += day.target_minutes
        self.actual_minutes += day.actual_minutes
        self.overtime_minutes += day.overtime_minutes
        self.worked_minutes += day.worked_minutes
        self.credit_minutes += day.credit_minutes
        self.correction_minutes += day.correction_minutes


@dataclass
class OvertimeCalculation:
    """Day rows plus weekly, monthly and range aggregates."""

    start: date | None
    end: date | None
    days: list[DayResult] = field(default_factory=list)
    weeks: list[PeriodTotals] = field(default_factory=list)
    months: list[PeriodTotals] = field(default_factory=list)
    totals: PeriodTotals = field(default_factory=lambda: PeriodTotals(key="total"))

    def balance_through(self, day: date) -> int:
        """Cumulative overtime from the start of the range through day."""
        balance = 0
        for row in self.days:
            if row.date > day:
                break
            balance = row.cumulative_minutes
        return balance


def _aggregate(days: list[DayResult], key_func: Callable[[date], str]) -> list[PeriodTotals]:
    buckets: dict[str, PeriodTotals] = {}
    for day in days:
        key = key_func(day.date)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = PeriodTotals(key=key)
        bucket.add(day)
    return list(buckets.values())


def calculate_overtime(
    employee: EmployeeInfo,
    calendar: HolidayCalendar,
    worked_by_day: Mapping[date, int],
    absences: Iterable[AbsenceRequest],
    corrections: Iterable[OvertimeCorrection],
    start: date | None,
    end: date | None,
    today: date,
) -> OvertimeCalculation:
    """Compute the day-by-day time account for an employee.

    The range is clamped to [hire_date, min(today, termination_date)].
    Working days get target vs. worked time and absence credit; worked time
    on any other day counts fully as overtime; corrections apply on every day.
    """
    bounds = effective_range(employee, start, end, today)
    if bounds is None:
        return OvertimeCalculation(start=None, end=None)
    range_start, range_end = bounds
    calendar.require_years(range_start, range_end)

    credits = resolve_absence_credits(employee, absences, range_start, range_end, calendar)

    correction_totals: dict[date, int] = defaultdict(int)
    for correction in corrections:
        if range_start <= correction.date <= range_end:
            correction_totals[correction.date] += correction.amount_minutes

    rows: dict[date, DayResult] = {}
    for day in enumerate_working_days(employee, range_start, range_end, calendar, today):
        absence = credits.get(day)
        rows[day] = DayResult(
            date=day,
            target_minutes=absence.target_minutes if absence else resolve_target_minutes(employee, day),
            worked_minutes=worked_by_day.get(day, 0),
            credit_minutes=absence.credit_minutes if absence else 0,
            correction_minutes=correction_totals.get(day, 0),
            is_working_day=True,
            absence=absence,
        )

    # Work or corrections on holidays, weekends and zero-schedule days.
    extra_days = {d for d, minutes in worked_by_day.items() if minutes > 0} | set(correction_totals)
    for day in sorted(extra_days):
        if day in rows or not range_start <= day <= range_end:
            continue
        holiday = calendar.get(day)
        rows[day] = DayResult(
            date=day,
            target_minutes=0 if holiday else resolve_target_minutes(employee, day),
            worked_minutes=worked_by_day.get(day, 0),
            credit_minutes=0,
            correction_minutes=correction_totals.get(day, 0),
            is_working_day=False,
            holiday_name=holiday.name if holiday else None,
        )

    days: list[DayResult] = []
    running = 0
    for day in sorted(rows):
        running += rows[day].overtime_minutes
        days.append(replace(rows[day], cumulative_minutes=running))

    totals = PeriodTotals(key="total")
    for row in days:
        totals.add(row)

    return OvertimeCalculation(
        start=range_start,
        end=range_end,
        days=days,
        weeks=_aggregate(days, iso_week_key),
        months=_aggregate(days, month_key),
        totals=totals,
    )
