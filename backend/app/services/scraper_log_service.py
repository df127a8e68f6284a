"""Append-only scraper run log."""

from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.scraper_log import ScraperLog

logger = structlog.get_logger(__name__)


class ScraperLogService:
    """Write and read ScraperLog rows."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="scraper_log_service")

    async def record(
        self,
        source: str,
        status: str,
        deals_found: int,
        deals_added: int,
        deals_updated: int,
        deals_expired: int,
        error_message: Optional[str],
        duration_ms: int,
        started_at: datetime,
        completed_at: datetime,
    ) -> ScraperLog:
        """Append one run entry for a source and commit it.

        Returns:
            The persisted ScraperLog
        """
        entry = ScraperLog(
            source=source,
            status=status,
            deals_found=deals_found,
            deals_added=deals_added,
            deals_updated=deals_updated,
            deals_expired=deals_expired,
            error_message=error_message,
            duration_ms=duration_ms,
            started_at=started_at,
            completed_at=completed_at,
        )
        self.db.add(entry)
        await self.db.commit()

        self.logger.info(
            "scraper_run_logged",
            source=source,
            status=status,
            deals_found=deals_found,
            deals_added=deals_added,
            deals_updated=deals_updated,
            deals_expired=deals_expired,
        )
        return entry

    async def list_recent(self, limit: int = 50) -> List[ScraperLog]:
        """Newest entries first."""
        result = await self.db.execute(
            select(ScraperLog).order_by(ScraperLog.started_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
