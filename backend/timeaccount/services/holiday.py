"""Holiday calendar: the pure lookup used by calculations plus holiday management."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, extract, func, select
from sqlmodel import col

from timeaccount.exceptions import ConflictError, DataUnavailableError, NotFoundError, ValidationError
from timeaccount.models.enums import AuditAction, AuditEntityType, HolidayJurisdiction
from timeaccount.models.holiday import Holiday, HolidayYear
from timeaccount.schemas.holiday import HolidayListResponse, HolidayResponse, HolidayYearResponse
from timeaccount.services.audit import model_to_audit_dict, write_audit_log
from timeaccount.services.cache import invalidate_months

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.schemas.holiday import CreateHolidayRequest, LoadHolidayYearRequest

logger = logging.getLogger(__name__)


class HolidayCalendar:
    """Holidays for a set of fully loaded years.

    Looking up a date in a year that was never loaded raises
    DataUnavailableError instead of reporting "no holiday".
    """

    def __init__(self, holidays: Iterable[Holiday], loaded_years: Iterable[int]) -> None:
        self._holidays = {h.date: h for h in holidays}
        self._loaded_years = frozenset(loaded_years)

    @property
    def loaded_years(self) -> frozenset[int]:
        return self._loaded_years

    def require_years(self, start: date, end: date) -> None:
        """Raise DataUnavailableError unless every year in [start, end] is loaded."""
        missing = [y for y in range(start.year, end.year + 1) if y not in self._loaded_years]
        if missing:
            raise DataUnavailableError(f"Holidays not loaded for year(s): {', '.join(map(str, missing))}")

    def get(self, day: date) -> Holiday | None:
        if day.year not in self._loaded_years:
            raise DataUnavailableError(f"Holidays not loaded for year {day.year}")
        return self._holidays.get(day)

    def is_holiday(self, day: date) -> bool:
        return self.get(day) is not None


async def load_holiday_calendar(session: AsyncSession, start: date, end: date) -> HolidayCalendar:
    """Load the calendar covering [start, end]; fails if any touched year is missing."""
    years = list(range(start.year, end.year + 1))
    result = await session.execute(select(col(HolidayYear.year)).where(col(HolidayYear.year).in_(years)))
    calendar_years = {row[0] for row in result.all()}

    holidays_result = await session.execute(
        select(Holiday).where(col(Holiday.date) >= start, col(Holiday.date) <= end).order_by(col(Holiday.date))
    )
    calendar = HolidayCalendar(holidays_result.scalars().all(), calendar_years)
    calendar.require_years(start, end)
    return calendar


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


def easter_sunday(year: int) -> date:
    """Gregorian Easter Sunday (anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def german_federal_holidays(year: int) -> list[tuple[date, str]]:
    """The nine public holidays observed in every German state."""
    easter = easter_sunday(year)
    return [
        (date(year, 1, 1), "Neujahr"),
        (easter - timedelta(days=2), "Karfreitag"),
        (easter + timedelta(days=1), "Ostermontag"),
        (date(year, 5, 1), "Tag der Arbeit"),
        (easter + timedelta(days=39), "Christi Himmelfahrt"),
        (easter + timedelta(days=50), "Pfingstmontag"),
        (date(year, 10, 3), "Tag der Deutschen Einheit"),
        (date(year, 12, 25), "1. Weihnachtstag"),
        (date(year, 12, 26), "2. Weihnachtstag"),
    ]


# ---------------------------------------------------------------------------
# Management
# ---------------------------------------------------------------------------


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        date=holiday.date,
        name=holiday.name,
        jurisdiction=HolidayJurisdiction(holiday.jurisdiction),
    )


async def load_holiday_year(
    session: AsyncSession,
    year: int,
    payload: LoadHolidayYearRequest,
    actor_id: uuid.UUID | None = None,
) -> HolidayYearResponse:
    """Replace all holidays of a year and mark the year as available.

    Every cached month of the year is invalidated, for all employees.
    """
    outside = [h.date for h in payload.holidays if h.date.year != year]
    if outside:
        raise ValidationError(f"Holidays outside {year}: {', '.join(d.isoformat() for d in outside)}")
    dates = [h.date for h in payload.holidays]
    if len(set(dates)) != len(dates):
        raise ValidationError("Duplicate holiday dates in payload")

    await session.execute(
        delete(Holiday)
        .where(extract("year", col(Holiday.date)) == year)
        .execution_options(synchronize_session="fetch")
    )
    holidays = [Holiday(date=h.date, name=h.name, jurisdiction=h.jurisdiction.value) for h in payload.holidays]
    session.add_all(holidays)

    marker = await session.get(HolidayYear, year)
    if marker is None:
        marker = HolidayYear(year=year, region=payload.region)
        session.add(marker)
    else:
        marker.region = payload.region
    await session.flush()

    invalidated = await invalidate_months(session, [date(year, m, 1) for m in range(1, 13)])

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.HOLIDAY_YEAR,
        entity_id=str(year),
        action=AuditAction.LOAD,
        after_json={"region": payload.region, "holidays": [h.isoformat() for h in sorted(dates)]},
    )
    await session.commit()
    logger.info("Loaded %d holidays for %d (region=%s)", len(holidays), year, payload.region)

    return HolidayYearResponse(
        year=year,
        region=payload.region,
        holidays=[_build_holiday_response(h) for h in sorted(holidays, key=lambda h: h.date)],
        invalidated_months=invalidated,
    )


async def create_holiday(
    session: AsyncSession,
    payload: CreateHolidayRequest,
    actor_id: uuid.UUID | None = None,
) -> HolidayResponse:
    """Add a single holiday to an already loaded year."""
    if await session.get(HolidayYear, payload.date.year) is None:
        raise DataUnavailableError(f"Holidays not loaded for year {payload.date.year}; load the year first")

    existing = await session.execute(select(Holiday).where(col(Holiday.date) == payload.date))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Holiday already exists for this date")

    holiday = Holiday(date=payload.date, name=payload.name, jurisdiction=payload.jurisdiction.value)
    session.add(holiday)
    await session.flush()
    await invalidate_months(session, [holiday.date])

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    await session.refresh(holiday)
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List holidays with optional year filter."""
    base_filter = []
    if year is not None:
        base_filter.append(extract("year", col(Holiday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(Holiday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(Holiday).where(*base_filter).order_by(col(Holiday.date)).offset(offset).limit(limit)
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays],
        total=total,
    )


async def delete_holiday(
    session: AsyncSession,
    holiday_id: uuid.UUID,
    actor_id: uuid.UUID | None = None,
) -> None:
    """Delete a holiday and invalidate its month."""
    holiday = await session.get(Holiday, holiday_id)
    if holiday is None:
        raise NotFoundError("Holiday not found")

    await write_audit_log(
        session,
        actor_id=actor_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await invalidate_months(session, [holiday.date])
    await session.delete(holiday)
    await session.commit()
