"""Services module for persistence used by the scrape pipeline.

Services handle data access for stores, deals and scraper run logs.
"""

from app.services.deal_service import DealService
from app.services.scraper_log_service import ScraperLogService
from app.services.store_service import StoreService

__all__ = [
    "DealService",
    "ScraperLogService",
    "StoreService",
]
