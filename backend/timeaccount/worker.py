"""Worker process for the scheduled year rollover.

Runs an asyncio loop that carries every employee's balance into the
current year once a day. The rollover is idempotent, so daily runs after
January 1 only pick up employees whose carryover went stale.
"""

from __future__ import annotations

import asyncio
import logging

from timeaccount.clock import get_clock
from timeaccount.config import get_settings
from timeaccount.db import session_scope

logger = logging.getLogger(__name__)

ROLLOVER_INTERVAL_SECONDS = 86400  # 24 hours


async def run_once() -> None:
    """Run the rollover for the current year in a fresh session."""
    from timeaccount.services.rollover import run_year_rollover

    clock = get_clock()
    async with session_scope() as session:
        result = await run_year_rollover(session, clock)
    logger.info(
        "Rollover run into %d: carried=%d already_done=%d skipped=%d errors=%d",
        result.year,
        result.carried,
        result.already_done,
        result.skipped,
        result.errors,
    )


async def run_rollover_loop() -> None:
    """Main worker loop."""
    logger.info("Rollover worker started")
    while True:
        try:
            await run_once()
        except Exception:
            logger.exception("Rollover run failed")
        await asyncio.sleep(ROLLOVER_INTERVAL_SECONDS)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_rollover_loop())


if __name__ == "__main__":
    main()
