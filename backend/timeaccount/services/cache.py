"""Dirty-marking of materialized months after their inputs change."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import or_, update
from sqlmodel import col

from timeaccount.models.monthly_balance import MonthlyBalance
from timeaccount.services.periods import iter_months, month_bounds, month_key

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def invalidate_months(
    session: AsyncSession,
    days: Iterable[date],
    employee_id: uuid.UUID | None = None,
) -> int:
    """Mark the months containing days dirty, for one employee or for everyone.

    January rows of later years are marked too, since their carry-in sums
    every earlier month. Returns the number of rows touched.
    """
    days = list(days)
    if not days:
        return 0

    months = sorted({month_key(d) for d in days})
    first_year = min(d.year for d in days)

    filters = [
        or_(
            col(MonthlyBalance.month).in_(months),
            (col(MonthlyBalance.month) > f"{first_year:04d}-12") & col(MonthlyBalance.month).like("%-01"),
        )
    ]
    if employee_id is not None:
        filters.append(col(MonthlyBalance.employee_id) == employee_id)

    result = await session.execute(
        update(MonthlyBalance)
        .where(*filters)
        .values(is_dirty=True)
        .execution_options(synchronize_session="fetch")
    )
    touched = result.rowcount or 0  # ty: ignore[unresolved-attribute]
    logger.debug("Invalidated %d cached months (employee=%s, months=%s)", touched, employee_id, months)
    return touched


async def invalidate_range(session: AsyncSession, start: date, end: date, employee_id: uuid.UUID) -> int:
    """Mark every month overlapping [start, end] dirty for one employee."""
    return await invalidate_months(session, [month_bounds(m)[0] for m in iter_months(start, end)], employee_id)


async def invalidate_employee(session: AsyncSession, employee_id: uuid.UUID) -> int:
    """Mark all of an employee's cached months dirty (e.g. after a schedule change)."""
    result = await session.execute(
        update(MonthlyBalance)
        .where(col(MonthlyBalance.employee_id) == employee_id)
        .values(is_dirty=True)
        .execution_options(synchronize_session="fetch")
    )
    touched = result.rowcount or 0  # ty: ignore[unresolved-attribute]
    logger.info("Invalidated all %d cached months of employee %s", touched, employee_id)
    return touched
