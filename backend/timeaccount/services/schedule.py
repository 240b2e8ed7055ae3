"""Target hours per day and working-day enumeration (pure, no DB)."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from timeaccount.services.employee import EmployeeInfo
    from timeaccount.services.holiday import HolidayCalendar

_ONE_DAY = timedelta(days=1)
_WORKDAYS_PER_WEEK = 5


def hours_to_minutes(hours: float) -> int:
    """Convert an hour figure to whole minutes, rounding to the nearest minute."""
    return round(hours * 60)


def resolve_target_minutes(employee: EmployeeInfo, day: date) -> int:
    """Scheduled target for a date, ignoring holidays and employment dates.

    A per-weekday schedule wins over weekly_hours; without one the week is
    spread evenly over Monday to Friday.
    """
    if employee.work_schedule is not None:
        return hours_to_minutes(employee.work_schedule.hours_for(day.weekday()))
    if day.weekday() >= _WORKDAYS_PER_WEEK:
        return 0
    return hours_to_minutes(employee.weekly_hours / _WORKDAYS_PER_WEEK)


def effective_range(
    employee: EmployeeInfo,
    start: date | None,
    end: date | None,
    today: date,
) -> tuple[date, date] | None:
    """Clamp a requested range to [hire_date, min(today, termination_date)].

    Returns None when nothing of the range falls inside employment so far.
    """
    range_start = employee.hire_date if start is None else max(start, employee.hire_date)
    range_end = today if end is None else min(end, today)
    if employee.termination_date is not None:
        range_end = min(range_end, employee.termination_date)
    if range_start > range_end:
        return None
    return range_start, range_end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


def is_working_day(employee: EmployeeInfo, day: date, calendar: HolidayCalendar) -> bool:
    """A working day has a positive target and is not a holiday."""
    if resolve_target_minutes(employee, day) <= 0:
        return False
    return not calendar.is_holiday(day)


def enumerate_working_days(
    employee: EmployeeInfo,
    start: date,
    end: date,
    calendar: HolidayCalendar,
    today: date,
) -> list[date]:
    """Ordered working days in [start, end], clamped to employment up to today."""
    bounds = effective_range(employee, start, end, today)
    if bounds is None:
        return []
    return [day for day in iter_days(*bounds) if is_working_day(employee, day, calendar)]
