# ruff: noqa: TC003
from __future__ import annotations

import datetime

from sqlmodel import Field

from timeaccount.models.base import EmployeeOwned, TimestampMixin, UUIDBase


class TimeEntry(UUIDBase, EmployeeOwned, TimestampMixin, table=True):
    """A worked shift; worked_minutes is net of breaks and handles overnight shifts."""

    __tablename__ = "time_entry"

    date: datetime.date = Field(index=True)
    start_time: datetime.time
    end_time: datetime.time
    break_minutes: int = Field(default=0, ge=0)
    worked_minutes: int = Field(ge=0)
