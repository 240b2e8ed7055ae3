# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, Field


class CreateTimeEntryRequest(BaseModel):
    """Request body for recording a worked shift.

    An end_time at or before start_time means the shift ran past midnight.
    """

    employee_id: uuid.UUID
    date: date
    start_time: time
    end_time: time
    break_minutes: int = Field(default=0, ge=0, le=1440)
    actor_id: uuid.UUID | None = None


class TimeEntryResponse(BaseModel):
    """Response schema for a time entry."""

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    start_time: time
    end_time: time
    break_minutes: int
    worked_minutes: int
    created_at: datetime


class TimeEntryListResponse(BaseModel):
    """Paginated list of time entries."""

    items: list[TimeEntryResponse]
    total: int
