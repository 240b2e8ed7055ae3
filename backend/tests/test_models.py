from __future__ import annotations

import uuid
from datetime import date, time

import pytest

from timeaccount.models import (
    AbsenceRequest,
    AuditLog,
    EmployeeOwned,
    Holiday,
    HolidayYear,
    MonthlyBalance,
    OvertimeCorrection,
    OvertimeTransaction,
    SQLModel,
    TimeEntry,
)
from timeaccount.models.enums import AbsenceStatus, HolidayJurisdiction, TransactionType

EXPECTED_TABLES = {
    "absence_request",
    "audit_log",
    "holiday",
    "holiday_year",
    "monthly_balance",
    "overtime_correction",
    "overtime_transaction",
    "time_entry",
}


def test_all_tables_registered() -> None:
    assert set(SQLModel.metadata.tables.keys()) == EXPECTED_TABLES


def test_monthly_balance_primary_key() -> None:
    table = SQLModel.metadata.tables["monthly_balance"]
    assert [c.name for c in table.primary_key.columns] == ["employee_id", "month"]


@pytest.mark.parametrize("model", [TimeEntry, AbsenceRequest, OvertimeCorrection, OvertimeTransaction, MonthlyBalance])
def test_employee_owned_tables_index_employee_id(model: type[EmployeeOwned]) -> None:
    column = model.__table__.c.employee_id  # ty: ignore[unresolved-attribute]
    assert column.index is True
    assert column.nullable is False


def test_holiday_date_is_unique() -> None:
    table = SQLModel.metadata.tables["holiday"]
    unique = [c for c in table.constraints if getattr(c, "name", None) == "uq_holiday_date"]
    assert len(unique) == 1


def test_time_entry_instantiation() -> None:
    entry = TimeEntry(
        employee_id=uuid.uuid4(),
        date=date(2025, 1, 6),
        start_time=time(22, 0),
        end_time=time(6, 0),
        worked_minutes=480,
    )
    assert entry.break_minutes == 0
    assert entry.id is not None


def test_absence_request_defaults() -> None:
    absence = AbsenceRequest(
        employee_id=uuid.uuid4(),
        type="vacation",
        start_date=date(2025, 7, 1),
        end_date=date(2025, 7, 4),
    )
    assert absence.status == AbsenceStatus.PENDING
    assert absence.reason is None
    assert absence.decided_by is None
    assert absence.decided_at is None


def test_correction_instantiation() -> None:
    correction = OvertimeCorrection(
        employee_id=uuid.uuid4(),
        date=date(2025, 3, 1),
        amount_minutes=-45,
        reason="Missed clock-out",
        created_by=uuid.uuid4(),
    )
    assert correction.amount_minutes == -45


def test_transaction_instantiation() -> None:
    row = OvertimeTransaction(
        employee_id=uuid.uuid4(),
        date=date(2025, 1, 1),
        transaction_type=TransactionType.CARRYOVER,
        amount_minutes=0,
        description="Carryover from 2024: +2h",
        source_type="SYSTEM",
        source_id="carryover:2025",
    )
    assert row.amount_minutes == 0
    assert row.source_id == "carryover:2025"


def test_monthly_balance_starts_dirty() -> None:
    row = MonthlyBalance(employee_id=uuid.uuid4(), month="2025-01")
    assert row.is_dirty is True
    assert row.version == 1
    assert row.carryover_minutes is None


def test_holiday_defaults_to_federal() -> None:
    holiday = Holiday(date=date(2025, 10, 3), name="Tag der Deutschen Einheit")
    assert holiday.jurisdiction == HolidayJurisdiction.FEDERAL
    assert HolidayYear(year=2025).region is None


def test_audit_log_instantiation() -> None:
    entry = AuditLog(entity_type="CORRECTION", entity_id=str(uuid.uuid4()), action="CREATE")
    assert entry.actor_id is None
    assert entry.before_json is None
    assert entry.created_at is not None
