# ruff: noqa: TC003
from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from timeaccount.models.base import EmployeeOwned


class MonthlyBalance(EmployeeOwned, table=True):
    """Materialized month of the live calculation; never edited by hand."""

    __tablename__ = "monthly_balance"
    __table_args__ = (sa.PrimaryKeyConstraint("employee_id", "month"),)

    month: str = Field(max_length=7)
    target_minutes: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    actual_minutes: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    overtime_minutes: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    carryover_minutes: int | None = None
    is_dirty: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
