"""Walmart deals extractor.

Walmart's deals page changes markup often, so extraction runs in tiers:
product-card selectors first, then the page's embedded __NEXT_DATA__
hydration state, then a bounded detail-page pass to recover was-prices.
"""

from typing import Any, List, Optional

from bs4 import BeautifulSoup, Tag

from app.scrapers.base import HtmlListingExtractor, ScrapedListing
from app.scrapers.enrichment import PriceEnricher
from app.scrapers.utils.json_tree import (
    NEXT_DATA_SELECTOR,
    dig,
    find_product_array,
    first_not_none,
    first_present,
    load_script_json,
)
from app.scrapers.utils.normalizer import coerce_price, parse_price


WAS_PRICE_SELECTORS = (
    ".price-old .visuallyhidden",
    '[data-automation-id="strikethrough-price"]',
    '[data-automation-id="was-price"]',
    '.w_iUH7 [aria-label*="Was"]',
    ".strike-through",
    '[class*="strikethrough"]',
    '[class*="was-price"]',
)


def _text(container: Tag, selector: str) -> str:
    el = container.select_one(selector)
    return el.get_text(strip=True) if el else ""


def _attr(container: Tag, selector: str, name: str) -> str:
    el = container.select_one(selector)
    value = el.get(name) if el else None
    return value.strip() if isinstance(value, str) else ""


class WalmartExtractor(HtmlListingExtractor):
    """Walmart deals page extractor with JSON fallback and price enrichment."""

    source = "walmart"
    base_url = "https://www.walmart.com"
    listing_url = "https://www.walmart.com/shop/deals"

    container_selectors = (
        '[data-testid="item-stack"] [data-item-id]',
        ".search-result-gridview-item",
        '[data-automation-id="product-card"]',
        ".sans-serif.mid-gray",
    )

    def __init__(self, fetcher=None, enricher: Optional[PriceEnricher] = None):
        super().__init__(fetcher)
        self.enricher = enricher or PriceEnricher(self.fetcher)

    def product_url_for(self, item_id: str) -> str:
        return f"{self.base_url}/ip/{item_id}"

    def parse_container(self, container: Tag) -> Optional[ScrapedListing]:
        """Parse one Walmart product card.

        Returns:
            ScrapedListing, or None when the item id, title or price is missing
        """
        item_id = container.get("data-item-id") or _attr(container, "[data-item-id]", "data-item-id")
        if not item_id:
            return None

        title = _text(container, '[data-automation-id="product-title"]') or _text(container, "a span")

        price_text = (
            _text(container, '[data-automation-id="product-price"] .f2')
            or _attr(container, '[itemprop="price"]', "content")
            or _text(container, ".price-main .visuallyhidden")
        )

        was_text = ""
        for selector in WAS_PRICE_SELECTORS:
            was_text = _text(container, selector)
            if was_text:
                break

        link = _attr(container, "a[href*='/ip/']", "href") or _attr(container, "a", "href")

        return self.build_listing(
            native_id=item_id,
            title=title,
            current_price=parse_price(price_text),
            product_url=link or self.product_url_for(item_id),
            original_price=parse_price(was_text),
            image_url=_attr(container, "img[data-testid]", "src") or _attr(container, "img", "src"),
            brand=_text(container, '[data-automation-id="product-brand"]'),
        )

    def parse_json_item(self, item: Any) -> Optional[ScrapedListing]:
        """Map one hydration-state product record using tolerant field aliases."""
        if not isinstance(item, dict):
            return None

        item_id = first_present(item, "usItemId", "id", "productId")
        title = first_present(item, "name", "title")
        price = first_not_none(
            dig(item, "priceInfo", "currentPrice", "price"),
            item.get("currentPrice"),
            item.get("price"),
        )
        was = first_not_none(
            dig(item, "priceInfo", "wasPrice", "price"),
            dig(item, "priceInfo", "listPrice", "price"),
            item.get("wasPrice"),
            item.get("listPrice"),
            item.get("originalPrice"),
        )
        image = first_present(item, "imageUrl", "image", "thumbnailUrl")
        brand = item.get("brand")

        if not item_id:
            return None
        return self.build_listing(
            native_id=str(item_id),
            title=str(title) if title else None,
            current_price=coerce_price(price),
            product_url=self.product_url_for(item_id),
            original_price=coerce_price(was),
            image_url=image if isinstance(image, str) else None,
            brand=brand if isinstance(brand, str) else None,
        )

    def extract_from_next_data(self, soup: BeautifulSoup) -> List[ScrapedListing]:
        """Fallback tier: read listings out of the embedded __NEXT_DATA__ payload."""
        data = load_script_json(soup, NEXT_DATA_SELECTOR)
        if data is None:
            return []

        listings = []
        for item in find_product_array(data):
            listing = self.parse_json_item(item)
            if listing is not None:
                listings.append(listing)

        self.logger.info("next_data_fallback", count=len(listings))
        return listings

    async def post_process(
        self, soup: BeautifulSoup, listings: List[ScrapedListing]
    ) -> List[ScrapedListing]:
        if not listings:
            listings = self.extract_from_next_data(soup)

        self.logger.info(
            "listings_parsed",
            count=len(listings),
            with_original_price=sum(1 for item in listings if item.original_price),
        )

        if listings:
            listings = await self.enricher.enrich(listings)
        return listings
