# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from timeaccount.db import SessionDep
from timeaccount.schemas.correction import CorrectionListResponse, CorrectionResponse, CreateCorrectionRequest
from timeaccount.services import correction as correction_service

corrections_router = APIRouter(prefix="/corrections", tags=["corrections"])

employee_corrections_router = APIRouter(prefix="/employees/{employee_id}/corrections", tags=["corrections"])


@corrections_router.post("", response_model=CorrectionResponse, status_code=status.HTTP_201_CREATED)
async def create_correction(
    payload: CreateCorrectionRequest,
    session: SessionDep,
) -> CorrectionResponse:
    """Add a manual correction to an employee's time account."""
    return await correction_service.create_correction(session, payload)


@employee_corrections_router.get("", response_model=CorrectionListResponse)
async def list_corrections(
    employee_id: uuid.UUID,
    session: SessionDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> CorrectionListResponse:
    """List an employee's corrections."""
    return await correction_service.list_corrections(session, employee_id, offset, limit)
