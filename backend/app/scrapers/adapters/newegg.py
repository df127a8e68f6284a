"""Newegg deals extractor.

Parses the public Today's Deals page. No API or credentials involved,
only a realistic browser identity.
"""

import re
from typing import Optional

from bs4 import Tag

from app.scrapers.base import HtmlListingExtractor, ScrapedListing
from app.scrapers.utils.normalizer import parse_price


ITEM_PATH_RE = re.compile(r"/p/([\w-]+)", re.IGNORECASE)
ITEM_QUERY_RE = re.compile(r"Item=([\w-]+)", re.IGNORECASE)


def _text(container: Tag, selector: str) -> str:
    el = container.select_one(selector)
    return el.get_text(strip=True) if el else ""


def _attr(container: Tag, selector: str, name: str) -> str:
    el = container.select_one(selector)
    value = el.get(name) if el else None
    return value.strip() if isinstance(value, str) else ""


class NeweggExtractor(HtmlListingExtractor):
    """Newegg Today's Deals page extractor.

    Newegg lays out products as `.item-cell` / `.item-container` blocks;
    the other selectors cover older and redesigned markup.
    """

    source = "newegg"
    base_url = "https://www.newegg.com"
    listing_url = "https://www.newegg.com/todays-deals"

    container_selectors = (
        ".item-cell",
        ".item-container",
        '[class*="product-card"]',
        ".goods-container .goods-item",
    )

    def parse_container(self, container: Tag) -> Optional[ScrapedListing]:
        """Parse one Newegg product block.

        Args:
            container: Product container element

        Returns:
            ScrapedListing, or None when the item number, title or price is missing
        """
        link = (
            _attr(container, "a.item-title", "href")
            or _attr(container, "a[href*='/p/']", "href")
            or _attr(container, "a", "href")
        )
        if not link:
            return None

        match = ITEM_PATH_RE.search(link) or ITEM_QUERY_RE.search(link)
        if not match:
            return None
        item_number = match.group(1)

        title = (
            _text(container, "a.item-title")
            or _text(container, ".item-info a")
            or _attr(container, "a[title]", "title")
        )

        # Price is usually split: <strong>899</strong><sup>.99</sup>
        price_whole = _text(container, ".price-current strong")
        if price_whole:
            price_fraction = _text(container, ".price-current sup").lstrip(".")
            current_price = parse_price(f"{price_whole}.{price_fraction or '00'}")
        else:
            current_price = parse_price(
                _text(container, ".price-current") or _text(container, '[class*="price"]')
            )

        brand = _attr(container, ".item-brand img", "alt") or _text(container, ".item-brand")

        listing = self.build_listing(
            native_id=item_number,
            title=title,
            current_price=current_price,
            product_url=link,
            original_price=parse_price(_text(container, ".price-was")),
            image_url=(
                _attr(container, "img.item-img", "src")
                or _attr(container, "a.item-img img", "src")
                or _attr(container, "img", "src")
            ),
            brand=brand,
        )
        if listing is None:
            self.logger.debug("container_skipped", item_number=item_number)
        return listing
