# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from timeaccount.models.enums import AbsenceType, TransactionSourceType, TransactionType

# ---------------------------------------------------------------------------
# Live calculation
# ---------------------------------------------------------------------------


class DayResponse(BaseModel):
    """One day of the live calculation."""

    date: date
    target_minutes: int
    worked_minutes: int
    credit_minutes: int
    correction_minutes: int
    actual_minutes: int
    overtime_minutes: int
    cumulative_minutes: int
    is_working_day: bool
    holiday_name: str | None = None
    absence_type: AbsenceType | None = None


class PeriodResponse(BaseModel):
    """Summed figures for a week (YYYY-Www), a month (YYYY-MM) or the whole range."""

    key: str
    target_minutes: int
    actual_minutes: int
    overtime_minutes: int


class LiveOvertimeResponse(BaseModel):
    """Day-by-day overtime for a range, recomputed from raw records."""

    employee_id: uuid.UUID
    start_date: date | None  # None when the range is outside employment
    end_date: date | None
    days: list[DayResponse]
    weeks: list[PeriodResponse]
    months: list[PeriodResponse]
    totals: PeriodResponse


# ---------------------------------------------------------------------------
# Materialized balances
# ---------------------------------------------------------------------------


class MonthlyBalanceResponse(BaseModel):
    """A materialized month."""

    employee_id: uuid.UUID
    month: str
    target_minutes: int
    actual_minutes: int
    overtime_minutes: int
    carryover_minutes: int | None  # only set on January rows
    version: int
    days: list[DayResponse] | None = None


class YearlyBalanceResponse(BaseModel):
    """Months of a year up to the current month, with the running balance."""

    employee_id: uuid.UUID
    year: int
    carryover_minutes: int
    target_minutes: int
    actual_minutes: int
    overtime_minutes: int
    balance_minutes: int  # carryover + overtime of the listed months
    months: list[MonthlyBalanceResponse]


class BalanceAsOfResponse(BaseModel):
    """Balance on a date, as the sum of ledger rows up to it."""

    employee_id: uuid.UUID
    as_of: date
    balance_minutes: int


class SufficiencyCheckRequest(BaseModel):
    """Would compensating requested_minutes keep the balance above the floor?"""

    requested_minutes: int = Field(ge=0)
    min_balance_minutes: int | None = Field(
        default=None,
        description="Most negative balance allowed after the deduction; defaults to the configured floor",
    )


class SufficiencyCheckResponse(BaseModel):
    """Result of a balance-sufficiency check."""

    employee_id: uuid.UUID
    balance_minutes: int
    requested_minutes: int
    min_balance_minutes: int
    remaining_minutes: int
    sufficient: bool


class RolloverResponse(BaseModel):
    """Result of a year rollover."""

    employee_id: uuid.UUID
    year: int
    carryover_minutes: int
    marker_id: uuid.UUID | None  # None when the year needs no carryover
    created: bool


class RecomputeResponse(BaseModel):
    """Result of a full-history recomputation."""

    employee_id: uuid.UUID
    months_recomputed: int
    first_month: str | None
    last_month: str | None


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class TransactionResponse(BaseModel):
    """A ledger row."""

    id: uuid.UUID
    date: date
    transaction_type: TransactionType
    type_label: str
    amount_minutes: int
    description: str
    source_type: TransactionSourceType
    source_id: str | None


class TransactionListResponse(BaseModel):
    """Paginated ledger rows, newest first."""

    items: list[TransactionResponse]
    total: int


class RolloverRunResponse(BaseModel):
    """Result of rolling every employee over into a year."""

    year: int
    carried: int
    already_done: int
    skipped: int
    errors: int


class RolloverPreviewItem(BaseModel):
    """What a rollover would carry for one employee; nothing is written."""

    employee_id: uuid.UUID
    first_name: str
    last_name: str
    hire_date: date
    carryover_minutes: int | None  # None when no carryover applies or it could not be calculated
    already_carried: bool
    warnings: list[str]


class RolloverPreviewResponse(BaseModel):
    """Dry run of a rollover into year for every employee."""

    year: int
    previous_year: int
    total_carryover_minutes: int
    items: list[RolloverPreviewItem]


class CarryoverHistoryItem(BaseModel):
    """One year boundary an employee's balance was carried across."""

    year: int
    carryover_minutes: int
    description: str
    transaction_id: uuid.UUID


class CarryoverHistoryResponse(BaseModel):
    """An employee's carryovers, newest year first."""

    employee_id: uuid.UUID
    items: list[CarryoverHistoryItem]


class RolloverRunHistoryItem(BaseModel):
    """A past company-wide rollover run."""

    year: int
    executed_at: datetime
    executed_by: uuid.UUID | None  # None for the scheduled worker
    carried: int
    already_done: int
    skipped: int
    errors: int
    success: bool


class RolloverRunHistoryResponse(BaseModel):
    """Rollover runs, newest first."""

    items: list[RolloverRunHistoryItem]
    total: int
