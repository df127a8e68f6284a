"""Bounded searches over embedded page JSON (hydration state, JSON-LD).

Retail pages ship their state as one large JSON blob whose shape changes
without notice, so lookups are structural rather than path-based: walk the
tree depth-first, stop at the first node that looks right, and never go
deeper than MAX_DEPTH levels.
"""

import json
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from bs4 import BeautifulSoup

from app.scrapers.utils.normalizer import coerce_price

MAX_DEPTH = 10

NEXT_DATA_SELECTOR = "script#__NEXT_DATA__"
JSON_LD_SELECTOR = 'script[type="application/ld+json"]'

ID_KEYS = ("usItemId", "productId")
NAME_KEYS = ("name", "title")


def dig(obj: Any, *keys: str) -> Any:
    """Follow nested dict keys, returning None as soon as a step is missing."""
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def first_present(obj: dict, *keys: str) -> Any:
    """Return the first truthy value stored under any of keys."""
    for key in keys:
        value = obj.get(key)
        if value:
            return value
    return None


def first_not_none(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def load_script_json(soup: BeautifulSoup, selector: str) -> Optional[Any]:
    """Parse the JSON body of the first script tag matching selector.

    Returns None when the tag is absent, empty, not valid JSON, or nested
    too deeply for the decoder.
    """
    tag = soup.select_one(selector)
    if tag is None:
        return None
    raw = tag.string if tag.string is not None else tag.get_text()
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        return None


def looks_like_product(item: Any) -> bool:
    """Duck-typed product record: has an id-like and a name-like key."""
    return (
        isinstance(item, dict)
        and any(item.get(k) for k in ID_KEYS)
        and any(item.get(k) for k in NAME_KEYS)
    )


def find_product_array(obj: Any, depth: int = 0, max_depth: int = MAX_DEPTH) -> List[dict]:
    """Find the first array containing product-like records.

    Args:
        obj: Parsed JSON value
        depth: Current recursion depth
        max_depth: Depth beyond which the search gives up

    Returns:
        The matching array (unfiltered, in document order), or []
    """
    if depth > max_depth or not obj or not isinstance(obj, (dict, list)):
        return []

    if isinstance(obj, list) and any(looks_like_product(item) for item in obj):
        return obj

    children = obj.values() if isinstance(obj, dict) else obj
    for value in children:
        if value and isinstance(value, (dict, list)):
            found = find_product_array(value, depth + 1, max_depth)
            if found:
                return found
    return []


def find_price_info(
    obj: Any, depth: int = 0, max_depth: int = MAX_DEPTH
) -> Optional[Tuple[Decimal, Decimal]]:
    """Find the first `priceInfo` node carrying a discounted price pair.

    Returns:
        (current, was) with was > current, or None
    """
    if depth > max_depth or not obj or not isinstance(obj, (dict, list)):
        return None

    if isinstance(obj, dict) and isinstance(obj.get("priceInfo"), dict):
        price_info = obj["priceInfo"]
        current = coerce_price(dig(price_info, "currentPrice", "price"))
        was = coerce_price(
            dig(price_info, "wasPrice", "price") or dig(price_info, "listPrice", "price")
        )
        if current and was and was > current:
            return current, was

    children = obj.values() if isinstance(obj, dict) else obj
    for value in children:
        found = find_price_info(value, depth + 1, max_depth)
        if found:
            return found
    return None


def find_offer_prices(json_ld: Any) -> Optional[Tuple[Decimal, Decimal]]:
    """Read a schema.org Offer/AggregateOffer price pair from a JSON-LD block.

    Accepts the block itself, a block with an `offers` object or list, or a
    list of blocks (first entry wins).

    Returns:
        (price, highPrice) with highPrice > price, or None
    """
    if isinstance(json_ld, list):
        json_ld = json_ld[0] if json_ld else None
    if not isinstance(json_ld, dict):
        return None

    offers = json_ld.get("offers") or json_ld
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if not isinstance(offers, dict):
        return None

    current = coerce_price(offers.get("price"))
    high = coerce_price(offers.get("highPrice"))
    if current and high and high > current:
        return current, high
    return None
