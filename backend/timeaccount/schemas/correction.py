# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field


class CreateCorrectionRequest(BaseModel):
    """Request body for a manual time-account correction."""

    employee_id: uuid.UUID
    date: date
    amount_minutes: int = Field(description="Signed: positive to add, negative to deduct")
    reason: str = Field(max_length=1000)
    created_by: uuid.UUID


class CorrectionResponse(BaseModel):
    """Response schema for a correction."""

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    amount_minutes: int
    reason: str
    created_by: uuid.UUID
    created_at: datetime


class CorrectionListResponse(BaseModel):
    """Paginated list of corrections."""

    items: list[CorrectionResponse]
    total: int
