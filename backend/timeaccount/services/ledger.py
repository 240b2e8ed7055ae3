"""Time-account ledger: rows derived from the live calculation, plus reads."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from timeaccount.models.enums import TransactionSourceType, TransactionType
from timeaccount.models.transaction import OvertimeTransaction
from timeaccount.schemas.balance import TransactionListResponse, TransactionResponse
from timeaccount.services.periods import month_bounds

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from timeaccount.models.correction import OvertimeCorrection
    from timeaccount.services.calculator import DayResult, OvertimeCalculation

logger = logging.getLogger(__name__)

# Namespace for deterministic ledger row ids.
_LEDGER_NAMESPACE = uuid.UUID("6f1c2b8e-4a63-5d1e-9b7a-3c0d8e2f5a41")


@dataclass(frozen=True)
class TransactionDraft:
    """A ledger row before it is persisted."""

    id: uuid.UUID
    date: date
    transaction_type: TransactionType
    amount_minutes: int
    description: str
    source_type: TransactionSourceType
    source_id: str | None

    def matches(self, row: OvertimeTransaction) -> bool:
        return (
            row.date == self.date
            and row.transaction_type == self.transaction_type.value
            and row.amount_minutes == self.amount_minutes
            and row.description == self.description
            and row.source_type == self.source_type.value
            and row.source_id == self.source_id
        )


def format_hours(minutes: int, signed: bool = False) -> str:
    """Render minutes as hours, e.g. 450 -> '7.5h', -30 -> '-0.5h'."""
    text = f"{minutes / 60:.2f}".rstrip("0").rstrip(".")
    if signed and minutes > 0:
        text = f"+{text}"
    return f"{text}h"


def transaction_id(
    employee_id: uuid.UUID,
    day: date,
    transaction_type: TransactionType,
    source_type: TransactionSourceType,
    source_id: str | None,
) -> uuid.UUID:
    """Stable id so that rebuilding a month reproduces the same rows."""
    name = f"{employee_id}:{day.isoformat()}:{transaction_type.value}:{source_type.value}:{source_id or ''}"
    return uuid.uuid5(_LEDGER_NAMESPACE, name)


def _draft(
    employee_id: uuid.UUID,
    day: date,
    transaction_type: TransactionType,
    amount_minutes: int,
    description: str,
    source_type: TransactionSourceType,
    source_id: str | None,
) -> TransactionDraft:
    return TransactionDraft(
        id=transaction_id(employee_id, day, transaction_type, source_type, source_id),
        date=day,
        transaction_type=transaction_type,
        amount_minutes=amount_minutes,
        description=description,
        source_type=source_type,
        source_id=source_id,
    )


def _day_drafts(employee_id: uuid.UUID, day: DayResult) -> list[TransactionDraft]:
    drafts: list[TransactionDraft] = []
    earned = day.worked_minutes - day.target_minutes
    worked, target = format_hours(day.worked_minutes), format_hours(day.target_minutes)

    if day.absence is not None:
        absence = day.absence
        source_id = str(absence.absence_id)
        drafts.append(
            _draft(
                employee_id,
                day.date,
                TransactionType.EARNED,
                earned,
                f"{absence.absence_type.value} absence: worked {worked} (target {target})",
                TransactionSourceType.ABSENCE,
                source_id,
            )
        )
        drafts.append(
            _draft(
                employee_id,
                day.date,
                absence.transaction_type,
                absence.credit_minutes,
                f"{absence.transaction_type.label}: {format_hours(absence.credit_minutes)}",
                TransactionSourceType.ABSENCE,
                source_id,
            )
        )
        return drafts

    if day.holiday_name is not None:
        description = f"Worked on holiday {day.holiday_name}: {worked}"
    elif day.worked_minutes == 0:
        description = f"No time recorded (target {target})"
    else:
        description = f"Worked {worked} (target {target})"
    drafts.append(
        _draft(
            employee_id,
            day.date,
            TransactionType.EARNED,
            earned,
            description,
            TransactionSourceType.TIME_ENTRY,
            day.date.isoformat(),
        )
    )
    return drafts


def build_transaction_drafts(
    employee_id: uuid.UUID,
    calculation: OvertimeCalculation,
    corrections: Iterable[OvertimeCorrection],
) -> list[TransactionDraft]:
    """Ledger rows for a calculated range; zero-amount rows are left out.

    The drafts sum to the range's total overtime.
    """
    if calculation.start is None or calculation.end is None:
        return []

    drafts: list[TransactionDraft] = []
    for day in calculation.days:
        drafts.extend(_day_drafts(employee_id, day))

    for correction in sorted(corrections, key=lambda c: (c.date, str(c.id))):
        if not calculation.start <= correction.date <= calculation.end:
            continue
        drafts.append(
            _draft(
                employee_id,
                correction.date,
                TransactionType.CORRECTION,
                correction.amount_minutes,
                f"Correction: {correction.reason}",
                TransactionSourceType.CORRECTION,
                str(correction.id),
            )
        )

    return [d for d in drafts if d.amount_minutes != 0]


async def sync_month_transactions(
    session: AsyncSession,
    employee_id: uuid.UUID,
    month: str,
    drafts: list[TransactionDraft],
) -> tuple[int, int, int]:
    """Make the month's derived rows equal to drafts. Returns (inserted, updated, deleted).

    The carryover marker is owned by the rollover and left alone.
    """
    month_start, month_end = month_bounds(month)
    result = await session.execute(
        select(OvertimeTransaction).where(
            col(OvertimeTransaction.employee_id) == employee_id,
            col(OvertimeTransaction.date) >= month_start,
            col(OvertimeTransaction.date) <= month_end,
            col(OvertimeTransaction.transaction_type) != TransactionType.CARRYOVER.value,
        )
    )
    existing = {row.id: row for row in result.scalars().all()}
    wanted = {d.id: d for d in drafts}

    inserted = updated = deleted = 0
    for row_id, row in existing.items():
        if row_id not in wanted:
            await session.delete(row)
            deleted += 1

    for draft_id, draft in wanted.items():
        row = existing.get(draft_id)
        if row is None:
            session.add(
                OvertimeTransaction(
                    id=draft.id,
                    employee_id=employee_id,
                    date=draft.date,
                    transaction_type=draft.transaction_type.value,
                    amount_minutes=draft.amount_minutes,
                    description=draft.description,
                    source_type=draft.source_type.value,
                    source_id=draft.source_id,
                )
            )
            inserted += 1
        elif not draft.matches(row):
            row.amount_minutes = draft.amount_minutes
            row.description = draft.description
            updated += 1

    await session.flush()
    if inserted or updated or deleted:
        logger.debug(
            "Ledger sync %s %s: inserted=%d updated=%d deleted=%d", employee_id, month, inserted, updated, deleted
        )
    return inserted, updated, deleted


def carryover_marker_id(employee_id: uuid.UUID, year: int) -> uuid.UUID:
    """Id of the carryover marker on January 1 of year."""
    return transaction_id(
        employee_id, date(year, 1, 1), TransactionType.CARRYOVER, TransactionSourceType.SYSTEM, f"carryover:{year}"
    )


async def upsert_carryover_marker(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    carryover_minutes: int,
) -> tuple[OvertimeTransaction, bool]:
    """Write the single zero-amount carryover marker for a year boundary.

    Returns (row, created); rerunning updates the description in place.
    """
    marker_id = carryover_marker_id(employee_id, year)
    description = f"Carryover from {year - 1}: {format_hours(carryover_minutes, signed=True)}"

    marker = await session.get(OvertimeTransaction, marker_id)
    if marker is not None:
        if marker.description != description:
            marker.description = description
            await session.flush()
        return marker, False

    marker = OvertimeTransaction(
        id=marker_id,
        employee_id=employee_id,
        date=date(year, 1, 1),
        transaction_type=TransactionType.CARRYOVER.value,
        amount_minutes=0,
        description=description,
        source_type=TransactionSourceType.SYSTEM.value,
        source_id=f"carryover:{year}",
    )
    session.add(marker)
    await session.flush()
    return marker, True


async def drop_carryover_marker(session: AsyncSession, employee_id: uuid.UUID, year: int) -> bool:
    """Remove a year's carryover marker if one exists (e.g. after a hire-date change)."""
    marker = await session.get(OvertimeTransaction, carryover_marker_id(employee_id, year))
    if marker is None:
        return False
    await session.delete(marker)
    await session.flush()
    return True


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def build_transaction_response(row: OvertimeTransaction) -> TransactionResponse:
    """Map a ledger row to its response schema."""
    transaction_type = TransactionType(row.transaction_type)
    return TransactionResponse(
        id=row.id,
        date=row.date,
        transaction_type=transaction_type,
        type_label=transaction_type.label,
        amount_minutes=row.amount_minutes,
        description=row.description,
        source_type=TransactionSourceType(row.source_type),
        source_id=row.source_id,
    )


async def list_transactions(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start: date | None = None,
    end: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> TransactionListResponse:
    """Ledger rows newest first, optionally limited to [start, end]."""
    base_filter = [col(OvertimeTransaction.employee_id) == employee_id]
    if start is not None:
        base_filter.append(col(OvertimeTransaction.date) >= start)
    if end is not None:
        base_filter.append(col(OvertimeTransaction.date) <= end)

    count_result = await session.execute(
        select(func.count()).select_from(OvertimeTransaction).where(*base_filter)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(OvertimeTransaction)
        .where(*base_filter)
        .order_by(
            col(OvertimeTransaction.date).desc(),
            col(OvertimeTransaction.transaction_type),
            col(OvertimeTransaction.id),
        )
        .offset(offset)
        .limit(limit)
    )
    return TransactionListResponse(
        items=[build_transaction_response(row) for row in result.scalars().all()],
        total=total,
    )


async def sum_transactions_through(session: AsyncSession, employee_id: uuid.UUID, as_of: date) -> int:
    """Sum of all ledger rows dated on or before as_of."""
    result = await session.execute(
        select(func.coalesce(func.sum(col(OvertimeTransaction.amount_minutes)), 0)).where(
            col(OvertimeTransaction.employee_id) == employee_id,
            col(OvertimeTransaction.date) <= as_of,
        )
    )
    return int(result.scalar_one())
