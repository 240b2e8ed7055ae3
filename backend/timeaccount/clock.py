"""Injected notion of "today" so calculations never read the wall clock directly."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Protocol, runtime_checkable
from zoneinfo import ZoneInfo

from fastapi import Depends

from timeaccount.config import get_settings


@runtime_checkable
class Clock(Protocol):
    """Source of the current calendar date."""

    def today(self) -> date:
        """Return the current date."""
        ...


class SystemClock:
    """Wall-clock date in a fixed timezone."""

    def __init__(self, timezone: str = "UTC") -> None:
        self._tz = ZoneInfo(timezone)

    def today(self) -> date:
        return datetime.now(self._tz).date()


class FixedClock:
    """Clock pinned to one date, for tests and replays."""

    def __init__(self, current: date) -> None:
        self.current = current

    def today(self) -> date:
        return self.current


def get_clock() -> Clock:
    """FastAPI dependency returning the configured clock."""
    return SystemClock(get_settings().timezone)


ClockDep = Annotated[Clock, Depends(get_clock)]
