"""Pydantic schemas for the DealScout API.

All request/response models are defined here for easy import.
"""

from app.schemas.health import HealthCheckResponse
from app.schemas.scraper import (
    ScrapedListingResponse,
    ScraperLogResponse,
    ScraperRunRequest,
    ScraperRunResponse,
    SourceRunResult,
)

__all__ = [
    # Health
    "HealthCheckResponse",
    # Scraper
    "ScraperRunRequest",
    "ScraperRunResponse",
    "SourceRunResult",
    "ScrapedListingResponse",
    "ScraperLogResponse",
]
