# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from timeaccount.models.base import UUIDBase, utc_timestamp_field
from timeaccount.models.enums import HolidayJurisdiction


class Holiday(UUIDBase, table=True):
    """A public holiday; forces the day's target to zero for everyone."""

    __tablename__ = "holiday"
    __table_args__ = (sa.UniqueConstraint("date", name="uq_holiday_date"),)

    date: datetime.date = Field(index=True)
    name: str = Field(max_length=255)
    jurisdiction: str = Field(default=HolidayJurisdiction.FEDERAL, max_length=50)


class HolidayYear(SQLModel, table=True):
    """Marks a calendar year whose holidays have been loaded."""

    __tablename__ = "holiday_year"

    year: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    region: str | None = Field(default=None, max_length=50)
    loaded_at: datetime.datetime = utc_timestamp_field(server_default=False)
