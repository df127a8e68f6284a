"""SQLAlchemy models for DealScout.

All models are imported here so metadata.create_all sees every table.
"""

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.store import Store
from app.models.deal import Deal, DEAL_SOURCE_MANUAL, DEAL_SOURCE_SCRAPER
from app.models.scraper_log import ScraperLog

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Store",
    "Deal",
    "DEAL_SOURCE_MANUAL",
    "DEAL_SOURCE_SCRAPER",
    "ScraperLog",
]
