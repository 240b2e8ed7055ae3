# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from timeaccount.db import SessionDep
from timeaccount.schemas.time_entry import CreateTimeEntryRequest, TimeEntryListResponse, TimeEntryResponse
from timeaccount.services import time_entry as time_entry_service

time_entries_router = APIRouter(prefix="/time-entries", tags=["time-entries"])

employee_time_entries_router = APIRouter(prefix="/employees/{employee_id}/time-entries", tags=["time-entries"])


@time_entries_router.post("", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_time_entry(
    payload: CreateTimeEntryRequest,
    session: SessionDep,
) -> TimeEntryResponse:
    """Record a worked shift."""
    return await time_entry_service.create_time_entry(session, payload)


@time_entries_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    actor_id: uuid.UUID | None = Query(default=None),
) -> None:
    """Delete a time entry."""
    await time_entry_service.delete_time_entry(session, entry_id, actor_id)


@employee_time_entries_router.get("", response_model=TimeEntryListResponse)
async def list_time_entries(
    employee_id: uuid.UUID,
    session: SessionDep,
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> TimeEntryListResponse:
    """List an employee's time entries."""
    return await time_entry_service.list_time_entries(session, employee_id, from_date, to_date, offset, limit)
