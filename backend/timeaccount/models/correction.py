# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

from sqlmodel import Field

from timeaccount.models.base import EmployeeOwned, TimestampMixin, UUIDBase


class OvertimeCorrection(UUIDBase, EmployeeOwned, TimestampMixin, table=True):
    """Immutable manual adjustment of an employee's time account."""

    __tablename__ = "overtime_correction"

    date: datetime.date = Field(index=True)
    amount_minutes: int
    reason: str = Field(max_length=1000)
    created_by: uuid.UUID
