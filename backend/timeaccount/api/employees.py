# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from timeaccount.clock import ClockDep
from timeaccount.db import SessionDep
from timeaccount.exceptions import NotFoundError, ValidationError
from timeaccount.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from timeaccount.services.cache import invalidate_employee
from timeaccount.services.employee import EmployeeInfo, get_employee_service
from timeaccount.services.materializer import prune_outside_employment

employees_router = APIRouter(prefix="/employees", tags=["employees"])


def _build_employee_response(employee: EmployeeInfo) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        hire_date=employee.hire_date,
        termination_date=employee.termination_date,
        weekly_hours=employee.weekly_hours,
        work_schedule=employee.work_schedule,
    )


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def upsert_employee(
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    session: SessionDep,
    clock: ClockDep,
) -> EmployeeResponse:
    """Create or update an employee in the stub service.

    Cached months of an existing employee are marked dirty, and cached
    months and ledger rows outside the (possibly changed) employment are
    removed.
    """
    if payload.termination_date is not None and payload.termination_date < payload.hire_date:
        raise ValidationError("termination_date must not be before hire_date")

    svc = get_employee_service()
    employee = EmployeeInfo(id=employee_id, **payload.model_dump())
    svc.seed(employee)  # ty: ignore[unresolved-attribute]
    await invalidate_employee(session, employee_id)
    await prune_outside_employment(session, employee, clock.today())
    await session.commit()
    return _build_employee_response(employee)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: uuid.UUID) -> EmployeeResponse:
    """Get employee info from the stub service."""
    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return _build_employee_response(employee)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees() -> EmployeeListResponse:
    """List all employees from the stub service."""
    employees = await get_employee_service().list_employees()
    items = [_build_employee_response(e) for e in employees]
    return EmployeeListResponse(items=items, total=len(items))
