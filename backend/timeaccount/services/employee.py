# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date
from typing import Protocol, Self, runtime_checkable

from pydantic import BaseModel, Field, model_validator


class WorkSchedule(BaseModel):
    """Target hours for each of the seven weekdays."""

    monday: float = Field(default=0, ge=0, le=24)
    tuesday: float = Field(default=0, ge=0, le=24)
    wednesday: float = Field(default=0, ge=0, le=24)
    thursday: float = Field(default=0, ge=0, le=24)
    friday: float = Field(default=0, ge=0, le=24)
    saturday: float = Field(default=0, ge=0, le=24)
    sunday: float = Field(default=0, ge=0, le=24)

    def hours_for(self, weekday: int) -> float:
        """Hours for a ``date.weekday()`` index (0 = Monday)."""
        return (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )[weekday]


class EmployeeInfo(BaseModel):
    """Employee metadata from the Employee Service."""

    id: uuid.UUID
    first_name: str
    last_name: str
    hire_date: date
    termination_date: date | None = None
    weekly_hours: float = Field(default=40, ge=0, le=168)
    work_schedule: WorkSchedule | None = None  # takes precedence over weekly_hours

    @model_validator(mode="after")
    def _termination_after_hire(self) -> Self:
        if self.termination_date is not None and self.termination_date < self.hire_date:
            raise ValueError("termination_date must not be before hire_date")
        return self


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the Employee Service."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        ...

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        ...


class InMemoryEmployeeService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch employee metadata. Returns None if not found."""
        return self._employees.get(employee_id)

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        return list(self._employees.values())


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """FastAPI dependency for the Employee Service."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service


async def require_employee(employee_id: uuid.UUID) -> EmployeeInfo:
    """Fetch an employee or raise NotFoundError."""
    from timeaccount.exceptions import NotFoundError

    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise NotFoundError(f"Employee {employee_id} not found")
    return employee
