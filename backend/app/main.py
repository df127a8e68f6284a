"""DealScout Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.v1.router import api_v1_router
from app.config import settings
from app.db.session import async_session_factory, engine
from app.dependencies import run_guard
from app.models import Base
from app.scrapers.scheduler import ScraperScheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting DealScout API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Auto-create tables on startup (safe for fresh deployments)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified/created")

    scheduler = None
    if settings.SCRAPE_SCHEDULE_ENABLED and settings.ENVIRONMENT != "test":
        scheduler = ScraperScheduler(async_session_factory, run_guard)
        scheduler.start(settings.SCRAPE_INTERVAL_MINUTES)
        logger.info(f"Scrape scheduler started (every {settings.SCRAPE_INTERVAL_MINUTES} min)")
    else:
        logger.info("Scrape scheduler disabled")

    yield

    logger.info("Shutting down DealScout API server...")
    if scheduler:
        scheduler.stop()


app = FastAPI(
    title="DealScout API",
    description="Deal aggregator with retailer scraping and deal reconciliation",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "DealScout API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
