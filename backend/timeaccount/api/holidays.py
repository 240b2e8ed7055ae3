# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from timeaccount.db import SessionDep
from timeaccount.models.enums import HolidayJurisdiction
from timeaccount.schemas.holiday import (
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
    HolidayYearResponse,
    LoadHolidayYearRequest,
)
from timeaccount.services import holiday as holiday_service

holidays_router = APIRouter(prefix="/holidays", tags=["holidays"])


@holidays_router.post("", response_model=HolidayResponse, status_code=status.HTTP_201_CREATED)
async def create_holiday(
    payload: CreateHolidayRequest,
    session: SessionDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> HolidayResponse:
    """Add a holiday to an already loaded year."""
    return await holiday_service.create_holiday(session, payload, actor_id)


@holidays_router.get("", response_model=HolidayListResponse)
async def list_holidays(
    session: SessionDep,
    year: int | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> HolidayListResponse:
    """List holidays with optional year filter."""
    return await holiday_service.list_holidays(session, year, offset, limit)


@holidays_router.delete("/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> None:
    """Delete a holiday."""
    await holiday_service.delete_holiday(session, holiday_id, actor_id)


@holidays_router.put("/years/{year}", response_model=HolidayYearResponse)
async def load_holiday_year(
    year: int,
    payload: LoadHolidayYearRequest,
    session: SessionDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> HolidayYearResponse:
    """Replace all holidays of a year and mark the year as loaded."""
    return await holiday_service.load_holiday_year(session, year, payload, actor_id)


@holidays_router.post("/years/{year}/federal", response_model=HolidayYearResponse)
async def load_federal_holidays(
    year: int,
    session: SessionDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> HolidayYearResponse:
    """Load the nine nationwide German public holidays for a year."""
    payload = LoadHolidayYearRequest(
        region=None,
        holidays=[
            CreateHolidayRequest(date=day, name=name, jurisdiction=HolidayJurisdiction.FEDERAL)
            for day, name in holiday_service.german_federal_holidays(year)
        ],
    )
    return await holiday_service.load_holiday_year(session, year, payload, actor_id)
