# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from timeaccount.services.employee import WorkSchedule


class UpsertEmployeeRequest(BaseModel):
    """Request body for upserting an employee in the stub service."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    hire_date: date
    termination_date: date | None = None
    weekly_hours: float = Field(default=40, ge=0, le=168)
    work_schedule: WorkSchedule | None = None


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    first_name: str
    last_name: str
    hire_date: date
    termination_date: date | None
    weekly_hours: float
    work_schedule: WorkSchedule | None


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
