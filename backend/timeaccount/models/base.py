from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def utc_timestamp_field(*, index: bool = False, server_default: bool = True) -> Any:
    """Timezone-aware timestamp column defaulting to now."""
    return Field(
        default_factory=now_utc,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()} if server_default else {},
    )


class UUIDBase(SQLModel):
    """Base model with a random UUID primary key."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class EmployeeOwned(SQLModel):
    """Rows that belong to one employee's time account."""

    employee_id: uuid.UUID = Field(index=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = utc_timestamp_field()
