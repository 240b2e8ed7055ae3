# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from timeaccount.models.base import EmployeeOwned, UUIDBase


class OvertimeTransaction(UUIDBase, EmployeeOwned, table=True):
    """Ledger row; the balance as of a date is the sum of rows dated on or before it.

    Ids are derived from (employee, date, type, source) so rebuilding a month
    yields the same rows.
    """

    __tablename__ = "overtime_transaction"
    __table_args__ = (sa.Index("ix_transaction_employee_date", "employee_id", "date"),)

    date: datetime.date
    transaction_type: str = Field(max_length=50)
    amount_minutes: int
    description: str = Field(max_length=500)
    source_type: str = Field(max_length=50)
    source_id: str | None = Field(default=None, max_length=255)
