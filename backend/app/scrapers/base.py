"""Base extractor interface.

All source-specific extractors inherit from BaseExtractor (directly, or via
HtmlListingExtractor / BaseAPIExtractor) and implement fetch_listings().
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

import structlog
from bs4 import BeautifulSoup, Tag

from app.config import settings
from app.core.exceptions import ScraperError
from app.scrapers.fetcher import HttpFetcher
from app.scrapers.utils.normalizer import sanitize_url, truncate
from app.scrapers.utils.user_agents import browser_headers


logger = structlog.get_logger(__name__)

MAX_TITLE_LENGTH = 500


class RunStatus:
    """Outcome of one extraction run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ScrapedListing:
    """Normalized product listing returned by all extractors."""

    external_id: str  # "{source}-{native id}"
    title: str
    current_price: Decimal
    product_url: str
    original_price: Optional[Decimal] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    brand: Optional[str] = None
    sku: Optional[str] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.external_id:
            raise ValueError("external_id is required")
        if not self.title:
            raise ValueError("title is required")
        if not self.product_url:
            raise ValueError("product_url is required")
        if self.current_price is None or self.current_price <= 0:
            raise ValueError("current_price must be a positive Decimal")


@dataclass
class ExtractionRunResult:
    """What a single extractor produced for one run."""

    source: str
    status: str
    listings: List[ScrapedListing] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: int = 0


class BaseExtractor(ABC):
    """Abstract base class for all source extractors.

    extract() never raises for anticipated failures: a ScraperError (fetch
    failure, bad status) becomes a `failed` result carrying the message.
    Anything else is a bug and propagates.
    """

    source: str = ""  # Must be overridden in subclass (e.g., "newegg")
    base_url: str = ""

    def __init__(self, fetcher: Optional[HttpFetcher] = None):
        """Initialize the extractor.

        Args:
            fetcher: Outbound fetch collaborator (injected by the factory)
        """
        self.fetcher = fetcher or HttpFetcher()
        self.logger = logger.bind(source=self.source)

    async def extract(self) -> ExtractionRunResult:
        """Run one extraction and report its outcome."""
        started = time.monotonic()
        self.logger.info("extraction_started")

        try:
            listings = await self.fetch_listings()
        except ScraperError as e:
            self.logger.error("extraction_failed", error=e.message)
            return ExtractionRunResult(
                source=self.source,
                status=RunStatus.FAILED,
                error=e.message,
                duration_ms=_elapsed_ms(started),
            )

        status = RunStatus.SUCCESS if listings else RunStatus.PARTIAL
        self.logger.info("extraction_complete", status=status, count=len(listings))
        return ExtractionRunResult(
            source=self.source,
            status=status,
            listings=listings,
            duration_ms=_elapsed_ms(started),
        )

    @abstractmethod
    async def fetch_listings(self) -> List[ScrapedListing]:
        """Fetch and parse this source's current listings.

        Returns:
            Listings in document order (may be empty)

        Raises:
            ScraperError: If the listing page or API could not be fetched
        """

    def external_id(self, native_id: str) -> str:
        return f"{self.source}-{native_id}"

    def build_listing(
        self,
        native_id: Optional[str],
        title: Optional[str],
        current_price: Optional[Decimal],
        product_url: Optional[str],
        original_price: Optional[Decimal] = None,
        image_url: Optional[str] = None,
        brand: Optional[str] = None,
        description: Optional[str] = None,
        sku: Optional[str] = None,
    ) -> Optional[ScrapedListing]:
        """Assemble a listing from raw parts, or None if a required part is missing.

        Relative URLs are resolved against base_url and the title is cut to
        MAX_TITLE_LENGTH.
        """
        title = (title or "").strip()
        if not native_id or not title or not current_price or not product_url:
            return None

        return ScrapedListing(
            external_id=self.external_id(native_id),
            title=truncate(title, MAX_TITLE_LENGTH),
            current_price=current_price,
            original_price=original_price,
            product_url=sanitize_url(product_url, self.base_url),
            image_url=sanitize_url(image_url, self.base_url) if image_url else None,
            brand=(brand or "").strip() or None,
            description=description,
            sku=sku,
        )


class HtmlListingExtractor(BaseExtractor):
    """Base class for extractors that parse a public listing page.

    Subclasses declare the listing URL and an ordered tuple of container
    selectors. The first selector that matches anything wins; results from
    different selectors are never merged.
    """

    listing_url: str = ""
    container_selectors: Sequence[str] = ()

    async def fetch_page(self, url: str, timeout: float) -> BeautifulSoup:
        """Fetch a page with a rotated browser identity and parse it.

        Raises:
            FetchError: If the fetch fails or returns a non-2xx status
        """
        response = await self.fetcher.fetch(url, headers=browser_headers(), timeout=timeout)
        return BeautifulSoup(response.body, "html.parser")

    def select_containers(self, soup: BeautifulSoup) -> List[Tag]:
        """Return the matches of the first container selector that finds any."""
        for selector in self.container_selectors:
            containers = soup.select(selector)
            if containers:
                self.logger.debug("containers_matched", selector=selector, count=len(containers))
                return containers
        return []

    async def fetch_listings(self) -> List[ScrapedListing]:
        soup = await self.fetch_page(self.listing_url, settings.SCRAPER_LISTING_TIMEOUT_SECONDS)

        listings = []
        for container in self.select_containers(soup):
            listing = self.parse_container(container)
            if listing is not None:
                listings.append(listing)

        return await self.post_process(soup, listings)

    @abstractmethod
    def parse_container(self, container: Tag) -> Optional[ScrapedListing]:
        """Parse one product container; return None to skip it."""

    async def post_process(
        self, soup: BeautifulSoup, listings: List[ScrapedListing]
    ) -> List[ScrapedListing]:
        """Hook for fallbacks and enrichment after selector extraction."""
        return listings


class BaseAPIExtractor(BaseExtractor):
    """Base class for extractors backed by a credentialed API.

    Without credentials the extractor does not touch the network and
    reports a `partial` run explaining what to configure.
    """

    missing_credentials_message: str = "API credentials are not configured."

    def has_credentials(self) -> bool:
        return False

    async def extract(self) -> ExtractionRunResult:
        if not self.has_credentials():
            self.logger.warning("extractor_skipped", reason="missing_credentials")
            return ExtractionRunResult(
                source=self.source,
                status=RunStatus.PARTIAL,
                error=self.missing_credentials_message,
            )
        return await super().extract()


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))
