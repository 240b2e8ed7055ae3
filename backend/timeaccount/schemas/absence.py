# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from timeaccount.models.enums import AbsenceStatus, AbsenceType


class CreateAbsenceRequest(BaseModel):
    """Request body for an absence over an inclusive date range."""

    employee_id: uuid.UUID
    type: AbsenceType
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=1000)
    actor_id: uuid.UUID | None = None


class DecideAbsenceRequest(BaseModel):
    """Request body for approving or rejecting an absence."""

    actor_id: uuid.UUID | None = None
    min_balance_minutes: int | None = Field(
        default=None,
        description="Floor for overtime-compensation approvals; defaults to the configured floor",
    )


class AbsenceResponse(BaseModel):
    """Response schema for an absence request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    type: AbsenceType
    start_date: date
    end_date: date
    status: AbsenceStatus
    reason: str | None
    decided_by: uuid.UUID | None
    decided_at: datetime | None
    created_at: datetime


class AbsenceListResponse(BaseModel):
    """Paginated list of absence requests."""

    items: list[AbsenceResponse]
    total: int
