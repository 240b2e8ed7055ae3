# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from timeaccount.clock import ClockDep
from timeaccount.db import SessionDep
from timeaccount.models.enums import AbsenceStatus
from timeaccount.schemas.absence import (
    AbsenceListResponse,
    AbsenceResponse,
    CreateAbsenceRequest,
    DecideAbsenceRequest,
)
from timeaccount.services import absence as absence_service

absences_router = APIRouter(prefix="/absences", tags=["absences"])

employee_absences_router = APIRouter(prefix="/employees/{employee_id}/absences", tags=["absences"])


@absences_router.post("", response_model=AbsenceResponse, status_code=status.HTTP_201_CREATED)
async def create_absence(
    payload: CreateAbsenceRequest,
    session: SessionDep,
) -> AbsenceResponse:
    """File a pending absence request."""
    return await absence_service.create_absence(session, payload)


@absences_router.post("/{absence_id}/approve", response_model=AbsenceResponse)
async def approve_absence(
    absence_id: uuid.UUID,
    payload: DecideAbsenceRequest,
    session: SessionDep,
    clock: ClockDep,
) -> AbsenceResponse:
    """Approve a pending absence."""
    return await absence_service.approve_absence(session, absence_id, payload, clock)


@absences_router.post("/{absence_id}/reject", response_model=AbsenceResponse)
async def reject_absence(
    absence_id: uuid.UUID,
    payload: DecideAbsenceRequest,
    session: SessionDep,
) -> AbsenceResponse:
    """Reject a pending absence or revoke an approved one."""
    return await absence_service.reject_absence(session, absence_id, payload)


@employee_absences_router.get("", response_model=AbsenceListResponse)
async def list_absences(
    employee_id: uuid.UUID,
    session: SessionDep,
    status_filter: AbsenceStatus | None = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AbsenceListResponse:
    """List an employee's absence requests."""
    return await absence_service.list_absences(session, employee_id, status_filter, offset, limit)
