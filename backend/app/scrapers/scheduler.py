"""APScheduler-based periodic scrape runs.

One interval job runs every registered source through the coordinator.
It shares the RunGuard with the API trigger, so a scheduled run and a
manual run never overlap.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ScrapeAlreadyRunningError
from app.scrapers.coordinator import RunGuard, ScrapeCoordinator

logger = structlog.get_logger(__name__)

JOB_ID = "scrape_all_sources"


class ScraperScheduler:
    """Manages the periodic scrape job.

    Errors inside a run are logged and never stop the scheduler.
    """

    def __init__(
        self,
        db_session_factory: async_sessionmaker[AsyncSession],
        run_guard: RunGuard,
        coordinator_factory: Callable[[AsyncSession], ScrapeCoordinator] = ScrapeCoordinator,
    ):
        """Initialize scraper scheduler.

        Args:
            db_session_factory: Async session factory for database access
            run_guard: Guard shared with the manual trigger
            coordinator_factory: Builds a coordinator for a session
        """
        self.db_session_factory = db_session_factory
        self.run_guard = run_guard
        self.coordinator_factory = coordinator_factory
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.logger = logger.bind(service="scraper_scheduler")

    def start(self, interval_minutes: int) -> Optional[Job]:
        """Start the scheduler with a single interval job."""
        if self.scheduler.running:
            self.logger.warning("scheduler_already_running")
            return None

        job = self.scheduler.add_job(
            func=self.run_scheduled_scrape,
            trigger=IntervalTrigger(
                minutes=interval_minutes,
                start_date=datetime.now(timezone.utc),
                timezone="UTC",
            ),
            id=JOB_ID,
            name="Scrape all sources",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()

        self.logger.info(
            "scheduler_started",
            interval_minutes=interval_minutes,
            next_run=job.next_run_time.isoformat() if job.next_run_time else None,
        )
        return job

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running job."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            self.logger.info("scheduler_stopped")

    async def run_scheduled_scrape(self) -> None:
        """Job body called by APScheduler.

        Catches everything so a failed run does not kill the job.
        """
        try:
            async with self.run_guard:
                async with self.db_session_factory() as db:
                    coordinator = self.coordinator_factory(db)
                    outcome = await coordinator.run_scrapers()
            self.logger.info(
                "scheduled_scrape_completed",
                total_found=outcome.total_found,
                total_added=outcome.total_added,
                total_updated=outcome.total_updated,
                total_expired=outcome.total_expired,
            )
        except ScrapeAlreadyRunningError:
            self.logger.warning("scheduled_scrape_skipped", reason="run_in_progress")
        except Exception as e:
            self.logger.error("scheduled_scrape_failed", error=str(e), exc_info=True)

    def is_running(self) -> bool:
        return self.scheduler.running
