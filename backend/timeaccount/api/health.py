import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from timeaccount.clock import ClockDep
from timeaccount.config import get_settings
from timeaccount.db import SessionDep
from timeaccount.models.holiday import HolidayYear

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    today: date
    holidays_loaded: bool


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep, clock: ClockDep) -> HealthResponse:
    """Report database reachability and whether this year's balances can be computed.

    Without the current year's holidays every balance read fails, so the
    service counts as degraded until they are loaded.
    """
    settings = get_settings()
    today = clock.today()
    holidays_loaded = False

    try:
        await session.execute(text("SELECT 1"))
        holidays_loaded = await session.get(HolidayYear, today.year) is not None
    except Exception:
        logger.exception("Health check: database connectivity failed")
    else:
        if not holidays_loaded:
            logger.warning("Health check: no holidays loaded for %d", today.year)

    return HealthResponse(
        status="ok" if holidays_loaded else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        today=today,
        holidays_loaded=holidays_loaded,
    )
