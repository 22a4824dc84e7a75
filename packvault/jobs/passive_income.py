"""
Scheduled job that pays passive income.

Runs inside the API process through an APScheduler AsyncIOScheduler,
or once from the command line (`packvault-income`).
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from packvault.config import settings
from packvault.db.database import async_session_factory
from packvault.services.income import IncomeReport, run_income_tick

logger = logging.getLogger(__name__)

JOB_ID = "passive_income"


class IncomeScheduler:
    """
    Start/stop wrapper around the recurring income job.

    Late runs are coalesced and never replayed. `tick()` runs one round
    directly, which is what tests use instead of waiting on the clock.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        interval_minutes: int = 60,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self._session_factory = session_factory
        self._interval_minutes = interval_minutes
        self._scheduler = scheduler or AsyncIOScheduler()
        # AsyncIOScheduler defers shutdown to the loop, so its own flag lags.
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    async def tick(self) -> IncomeReport | None:
        """Run one income round. A failed round is logged and skipped."""
        try:
            return await run_income_tick(self._session_factory)
        except Exception as e:
            logger.error("Income tick failed: %s", e)
            return None

    def start(self) -> None:
        """Register the job and start the scheduler. Needs a running event loop."""
        if self._started:
            return
        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            name="Passive income",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        self._started = True
        logger.info("Income scheduler started (every %d min)", self._interval_minutes)

    def stop(self) -> None:
        """Shut the scheduler down. Safe to call more than once."""
        if not self._started:
            return
        self._started = False
        self._scheduler.shutdown(wait=False)
        logger.info("Income scheduler stopped")


async def run_once() -> IncomeReport | None:
    """Run a single income round against the configured database."""
    return await IncomeScheduler(async_session_factory, settings.income_interval_minutes).tick()


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_once())


if __name__ == "__main__":
    main()
