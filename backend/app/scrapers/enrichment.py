"""Detail-page price enrichment.

Listing pages often show only the sale price. For the first few listings
of a run we fetch the product's own page and look for an authoritative
current/was price pair in its structured data.
"""

import dataclasses
from decimal import Decimal
from typing import List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup

from app.config import settings
from app.core.exceptions import ScraperError
from app.scrapers.base import ScrapedListing
from app.scrapers.fetcher import HttpFetcher
from app.scrapers.utils.delays import jittered_delay
from app.scrapers.utils.json_tree import (
    JSON_LD_SELECTOR,
    NEXT_DATA_SELECTOR,
    find_offer_prices,
    find_price_info,
    load_script_json,
)
from app.scrapers.utils.user_agents import browser_headers


logger = structlog.get_logger(__name__)


def extract_detail_prices(soup: BeautifulSoup) -> Optional[Tuple[Decimal, Decimal]]:
    """Find a (current, was) pair on a product detail page.

    The first JSON-LD block is tried first, then the hydration state.
    """
    json_ld = load_script_json(soup, JSON_LD_SELECTOR)
    if json_ld is not None:
        prices = find_offer_prices(json_ld)
        if prices:
            return prices

    next_data = load_script_json(soup, NEXT_DATA_SELECTOR)
    if next_data is not None:
        return find_price_info(next_data)
    return None


class PriceEnricher:
    """Refines listing prices from their product pages.

    Only the first `limit` listings are visited. Listings past the bound
    are returned as-is.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
        delay_range: Optional[Tuple[int, int]] = None,
    ):
        self.fetcher = fetcher
        self.limit = settings.SCRAPER_ENRICH_LIMIT if limit is None else limit
        self.timeout = settings.SCRAPER_DETAIL_TIMEOUT_SECONDS if timeout is None else timeout
        self.delay_range = delay_range or settings.get_enrich_delay_range()
        self.logger = logger.bind(service="price_enricher")

    async def enrich(self, listings: List[ScrapedListing]) -> List[ScrapedListing]:
        """Return a copy of listings with the first `limit` entries enriched."""
        enriched = list(listings)
        targets = enriched[: max(0, self.limit)]

        for index, listing in enumerate(targets):
            enriched[index] = await self.enrich_one(listing)
            if index < len(targets) - 1:
                await jittered_delay(*self.delay_range)

        self.logger.info(
            "enrichment_complete",
            visited=len(targets),
            with_original_price=sum(1 for item in enriched if item.original_price),
        )
        return enriched

    async def enrich_one(self, listing: ScrapedListing) -> ScrapedListing:
        """Enrich a single listing; on any fetch failure the listing is kept."""
        try:
            response = await self.fetcher.fetch(
                listing.product_url,
                headers=browser_headers(),
                timeout=self.timeout,
            )
        except ScraperError as e:
            self.logger.warning(
                "enrichment_failed",
                external_id=listing.external_id,
                error=e.message,
            )
            return listing

        prices = extract_detail_prices(BeautifulSoup(response.body, "html.parser"))
        if prices is None:
            return listing

        current, was = prices
        self.logger.debug(
            "listing_enriched",
            external_id=listing.external_id,
            current_price=str(current),
            original_price=str(was),
        )
        return dataclasses.replace(listing, current_price=current, original_price=was)
