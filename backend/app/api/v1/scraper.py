"""Scrape trigger and run log endpoints.

Two triggers run the same coordinator:

  POST /admin/scraper/run   optional {"sources": [...]} body
  GET  /cron/scrape         all sources, for external schedulers

Both authenticate with `Authorization: Bearer <CRON_SECRET>` and share the
process-wide RunGuard, so overlapping requests get 409 instead of a second
concurrent run.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ScrapeAlreadyRunningError
from app.dependencies import (
    get_coordinator,
    get_db,
    get_run_guard,
    require_admin_secret,
    require_cron_secret,
)
from app.schemas.scraper import (
    ScraperLogResponse,
    ScraperRunRequest,
    ScraperRunResponse,
    SourceRunResult,
)
from app.scrapers.coordinator import CoordinatorResult, RunGuard, ScrapeCoordinator
from app.services.scraper_log_service import ScraperLogService

router = APIRouter()
logger = structlog.get_logger(__name__)


def _to_response(outcome: CoordinatorResult) -> ScraperRunResponse:
    return ScraperRunResponse(
        success=True,
        total_found=outcome.total_found,
        total_added=outcome.total_added,
        total_updated=outcome.total_updated,
        total_expired=outcome.total_expired,
        results=[SourceRunResult.model_validate(result) for result in outcome.results],
    )


async def _guarded_run(
    coordinator: ScrapeCoordinator,
    guard: RunGuard,
    sources: Optional[List[str]],
) -> ScraperRunResponse:
    try:
        async with guard:
            outcome = await coordinator.run_scrapers(sources)
    except ScrapeAlreadyRunningError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return _to_response(outcome)


@router.post(
    "/admin/scraper/run",
    response_model=ScraperRunResponse,
    dependencies=[Depends(require_admin_secret)],
)
async def run_scraper(
    payload: Optional[ScraperRunRequest] = Body(None),
    coordinator: ScrapeCoordinator = Depends(get_coordinator),
    guard: RunGuard = Depends(get_run_guard),
):
    """Run the scrapers now.

    Unknown names in `sources` are filtered out; if the body is missing
    or has no `sources`, every source runs.
    """
    sources = None
    if payload is not None and payload.sources is not None:
        known = set(coordinator.factory.sources())
        sources = [source for source in payload.sources if source in known]
        for source in payload.sources:
            if source not in known:
                logger.warning("unknown_source_skipped", source=source)

    logger.info("manual_scrape_requested", sources=sources)
    return await _guarded_run(coordinator, guard, sources)


@router.get(
    "/cron/scrape",
    response_model=ScraperRunResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def cron_scrape(
    coordinator: ScrapeCoordinator = Depends(get_coordinator),
    guard: RunGuard = Depends(get_run_guard),
):
    """Run every source; meant for an external cron hitting the API."""
    logger.info("cron_scrape_requested")
    return await _guarded_run(coordinator, guard, None)


@router.get(
    "/admin/scraper/logs",
    response_model=List[ScraperLogResponse],
    dependencies=[Depends(require_admin_secret)],
)
async def list_scraper_logs(
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """Most recent scraper run log entries, newest first."""
    service = ScraperLogService(db)
    return await service.list_recent(limit=limit)
