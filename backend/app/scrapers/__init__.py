"""Scraper system for extracting retailer deals.

This package provides:
- Base extractor classes and the ScrapedListing / ExtractionRunResult types
- Source extractors (walmart, newegg, amazon) and their registry
- Detail-page price enrichment
- The run coordinator that reconciles listings with stored deals
"""

from .base import (
    BaseExtractor,
    HtmlListingExtractor,
    BaseAPIExtractor,
    ScrapedListing,
    ExtractionRunResult,
    RunStatus,
)
from .factory import ExtractorFactory

__all__ = [
    # Base classes
    "BaseExtractor",
    "HtmlListingExtractor",
    "BaseAPIExtractor",
    # Data structures
    "ScrapedListing",
    "ExtractionRunResult",
    "RunStatus",
    # Factory
    "ExtractorFactory",
]
