# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from timeaccount.models.base import EmployeeOwned, TimestampMixin, UUIDBase
from timeaccount.models.enums import AbsenceStatus


class AbsenceRequest(UUIDBase, EmployeeOwned, TimestampMixin, table=True):
    """An absence over an inclusive date range; only approved rows touch the balance."""

    __tablename__ = "absence_request"
    __table_args__ = (sa.Index("ix_absence_employee_status", "employee_id", "status"),)

    type: str = Field(max_length=50)
    start_date: date
    end_date: date
    status: str = Field(default=AbsenceStatus.PENDING, max_length=50)
    reason: str | None = None
    decided_by: uuid.UUID | None = None
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
