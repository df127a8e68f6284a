"""Scrape run coordination and deal reconciliation.

The coordinator runs extractors one source at a time and merges each
source's listings into the deals table:

    extract -> upsert each listing -> expire what disappeared -> log

A failure in one source (missing store, fetch error) is recorded for that
source and the run moves on to the next one.
"""

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ScrapeAlreadyRunningError, StoreNotFoundError
from app.models.base import utcnow
from app.scrapers.base import ExtractionRunResult, RunStatus, ScrapedListing
from app.scrapers.factory import ExtractorFactory
from app.scrapers.register_adapters import build_default_factory
from app.scrapers.utils.delays import jittered_delay
from app.scrapers.utils.normalizer import calculate_savings, is_featured
from app.services.deal_service import DealService
from app.services.scraper_log_service import ScraperLogService
from app.services.store_service import StoreService

logger = structlog.get_logger(__name__)


@dataclass
class CoordinatorResult:
    """Aggregate outcome of one coordinator run."""

    results: List[ExtractionRunResult] = field(default_factory=list)
    total_found: int = 0
    total_added: int = 0
    total_updated: int = 0
    total_expired: int = 0


@dataclass
class UpsertCounts:
    added: int = 0
    updated: int = 0
    featured: int = 0
    failed: int = 0


class RunGuard:
    """Process-wide guard that allows one scrape run at a time.

    Shared by the API trigger and the scheduler. Acquisition never waits:
    a second caller gets ScrapeAlreadyRunningError immediately.
    """

    def __init__(self):
        self._lock = asyncio.Lock()

    def is_running(self) -> bool:
        return self._lock.locked()

    async def __aenter__(self) -> "RunGuard":
        if self._lock.locked():
            raise ScrapeAlreadyRunningError()
        await self._lock.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._lock.release()


class ScrapeCoordinator:
    """Runs extractors and reconciles their output with persisted deals.

    The store-id cache belongs to this instance and is cleared at the end
    of every run, so store changes are picked up by the next run.
    """

    def __init__(
        self,
        db: AsyncSession,
        factory: Optional[ExtractorFactory] = None,
        source_delay_range: Optional[Sequence[int]] = None,
        featured_threshold: Optional[Decimal] = None,
    ):
        """Initialize the coordinator.

        Args:
            db: Async database session
            factory: Extractor registry (defaults to all built-in sources)
            source_delay_range: (min_ms, max_ms) pause between sources
            featured_threshold: Savings percent at which a deal is featured
        """
        self.db = db
        self.factory = factory or build_default_factory()
        self.source_delay_range = tuple(source_delay_range or settings.get_source_delay_range())
        self.featured_threshold = (
            featured_threshold
            if featured_threshold is not None
            else Decimal(str(settings.FEATURED_SAVINGS_PERCENT))
        )

        self.store_service = StoreService(db)
        self.deal_service = DealService(db)
        self.log_service = ScraperLogService(db)
        self.logger = logger.bind(service="scrape_coordinator")

        self._store_ids: Optional[Dict[str, UUID]] = None

    async def run_scrapers(self, sources: Optional[Sequence[str]] = None) -> CoordinatorResult:
        """Run the given sources (or every registered one) in order.

        Args:
            sources: Source names to run; unknown names are skipped

        Returns:
            CoordinatorResult with one entry per source that was attempted
        """
        requested = list(sources) if sources is not None else self.factory.sources()
        runnable = []
        for source in requested:
            if self.factory.has_source(source):
                runnable.append(source)
            else:
                self.logger.warning("unknown_source_skipped", source=source)

        self.logger.info("scrape_run_started", sources=runnable)
        outcome = CoordinatorResult()

        try:
            for index, source in enumerate(runnable):
                ran_extractor = await self._run_source(source, outcome)
                if ran_extractor and index < len(runnable) - 1:
                    await jittered_delay(*self.source_delay_range)
        finally:
            self._store_ids = None

        self.logger.info(
            "scrape_run_complete",
            total_found=outcome.total_found,
            total_added=outcome.total_added,
            total_updated=outcome.total_updated,
            total_expired=outcome.total_expired,
        )
        return outcome

    async def _run_source(self, source: str, outcome: CoordinatorResult) -> bool:
        """Run and reconcile a single source.

        Returns:
            False if the source was skipped before extraction
        """
        log = self.logger.bind(source=source)

        try:
            store_id = await self._resolve_store_id(source)
        except StoreNotFoundError as e:
            log.warning("store_not_found")
            now = utcnow()
            outcome.results.append(
                ExtractionRunResult(source=source, status=RunStatus.FAILED, error=e.message)
            )
            await self.log_service.record(
                source=source,
                status=RunStatus.FAILED,
                deals_found=0,
                deals_added=0,
                deals_updated=0,
                deals_expired=0,
                error_message=e.message,
                duration_ms=0,
                started_at=now,
                completed_at=now,
            )
            return False

        started_at = utcnow()
        extractor = self.factory.create(source)
        result = await extractor.extract()
        outcome.results.append(result)

        counts = UpsertCounts()
        expired = 0
        if result.listings:
            counts = await self._upsert_listings(result.listings, store_id, source)
            expired = await self._expire_missing(result.listings, store_id, source)

        outcome.total_found += len(result.listings)
        outcome.total_added += counts.added
        outcome.total_updated += counts.updated
        outcome.total_expired += expired

        await self.log_service.record(
            source=source,
            status=result.status,
            deals_found=len(result.listings),
            deals_added=counts.added,
            deals_updated=counts.updated,
            deals_expired=expired,
            error_message=result.error,
            duration_ms=result.duration_ms,
            started_at=started_at,
            completed_at=utcnow(),
        )

        log.info(
            "source_reconciled",
            status=result.status,
            found=len(result.listings),
            added=counts.added,
            updated=counts.updated,
            expired=expired,
            featured=counts.featured,
            failed=counts.failed,
        )
        return True

    async def _resolve_store_id(self, source: str) -> UUID:
        """Find the active store whose slug equals the source name.

        Raises:
            StoreNotFoundError: If no active store exists for source
        """
        if self._store_ids is None:
            self._store_ids = await self.store_service.get_active_store_ids()

        store_id = self._store_ids.get(source)
        if store_id is None:
            raise StoreNotFoundError(source)
        return store_id

    async def _upsert_listings(
        self, listings: List[ScrapedListing], store_id: UUID, source: str
    ) -> UpsertCounts:
        """Insert or refresh each listing; a failing listing is logged and skipped."""
        counts = UpsertCounts()

        for listing in listings:
            savings = calculate_savings(listing.current_price, listing.original_price)
            featured = is_featured(savings, self.featured_threshold)

            try:
                existing = await self.deal_service.get_by_external_id(listing.external_id, store_id)
                if existing:
                    await self.deal_service.update_scraped_deal(existing, listing, savings, featured)
                    counts.updated += 1
                else:
                    await self.deal_service.create_scraped_deal(store_id, listing, savings, featured)
                    counts.added += 1
            except SQLAlchemyError as e:
                await self.db.rollback()
                counts.failed += 1
                self.logger.error(
                    "listing_upsert_failed",
                    source=source,
                    external_id=listing.external_id,
                    error=str(e),
                )
                continue

            if featured:
                counts.featured += 1

        return counts

    async def _expire_missing(
        self, listings: List[ScrapedListing], store_id: UUID, source: str
    ) -> int:
        """Expire active scraper deals of this store that were not seen in this run.

        Deals without an external_id are never touched.
        """
        seen = {listing.external_id for listing in listings}
        now = utcnow()
        expired = 0

        try:
            active = await self.deal_service.get_active_scraper_deals(store_id)
            for deal_id, external_id in active:
                if external_id and external_id not in seen:
                    await self.deal_service.expire_deal(deal_id, now)
                    expired += 1
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("deal_expiry_failed", source=source, error=str(e))

        if expired:
            self.logger.info("deals_expired", source=source, count=expired)
        return expired
