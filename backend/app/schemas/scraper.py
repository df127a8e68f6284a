"""Pydantic schemas for the scrape trigger and run log endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ScraperRunRequest(BaseModel):
    """Optional body of the admin run trigger.

    Unknown source names are dropped before the run; an absent list runs
    every source.
    """

    sources: Optional[List[str]] = Field(
        None,
        description="Subset of sources to run",
        examples=[["walmart", "newegg"]],
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ScrapedListingResponse(BaseModel):
    """One listing as extracted during the run."""

    model_config = ConfigDict(from_attributes=True)

    external_id: str
    title: str
    current_price: Decimal
    original_price: Optional[Decimal] = None
    product_url: str
    image_url: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None


class SourceRunResult(BaseModel):
    """Outcome of one source within a run."""

    model_config = ConfigDict(from_attributes=True)

    source: str
    status: str = Field(..., description="'success', 'partial' or 'failed'")
    listings: List[ScrapedListingResponse] = []
    error: Optional[str] = None
    duration_ms: int = 0


class ScraperRunResponse(BaseModel):
    """Result of a full coordinator run."""

    model_config = ConfigDict(from_attributes=True)

    success: bool = True
    total_found: int
    total_added: int
    total_updated: int
    total_expired: int
    results: List[SourceRunResult]


class ScraperLogResponse(BaseModel):
    """A persisted run log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source: str
    status: str
    deals_found: int
    deals_added: int
    deals_updated: int
    deals_expired: int
    error_message: Optional[str] = None
    duration_ms: int
    started_at: datetime
    completed_at: Optional[datetime] = None
