# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from timeaccount.models.enums import HolidayJurisdiction


class CreateHolidayRequest(BaseModel):
    """Request body for creating a single holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)
    jurisdiction: HolidayJurisdiction = HolidayJurisdiction.FEDERAL


class LoadHolidayYearRequest(BaseModel):
    """Request body for loading (or replacing) all holidays of a year."""

    region: str | None = Field(default=None, max_length=50)
    holidays: list[CreateHolidayRequest]


class HolidayResponse(BaseModel):
    """Response schema for a holiday."""

    id: uuid.UUID
    date: date
    name: str
    jurisdiction: HolidayJurisdiction


class HolidayListResponse(BaseModel):
    """Paginated list of holidays."""

    items: list[HolidayResponse]
    total: int


class HolidayYearResponse(BaseModel):
    """Result of loading a holiday year."""

    year: int
    region: str | None
    holidays: list[HolidayResponse]
    invalidated_months: int
