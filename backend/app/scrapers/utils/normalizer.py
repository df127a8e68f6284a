"""Price and text normalization helpers shared by every extractor."""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")
FEATURED_SAVINGS_PERCENT = Decimal("20")

_NON_PRICE_CHARS = re.compile(r"[^\d.]")
# First digit, with a decimal point directly before it unless that dot ends
# a word ("Rs.5")
_PRICE_START = re.compile(r"(?<![A-Za-z])\.(?=\d)|\d")
_LEADING_NUMBER = re.compile(r"\d*\.?\d*")


@dataclass(frozen=True)
class Savings:
    """Derived discount figures for a listing."""

    amount: Decimal
    percent: Decimal


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price(text: Optional[str]) -> Optional[Decimal]:
    """Extract a positive price from noisy text.

    Text before the first digit is dropped (so a dotted currency prefix
    such as "Rs." is not read as a decimal point), everything except
    digits and the decimal point is stripped, then the leading numeric
    part is parsed:
    - "$1,299.00" -> 1299.00
    - "Now $49.99" -> 49.99
    - "Rs. 1,299" -> 1299.00
    - "free", "", "$0.00", None -> None

    Args:
        text: Raw price text

    Returns:
        Decimal rounded to cents, or None if no positive price is present
    """
    if not text:
        return None

    text = str(text)
    start = _PRICE_START.search(text)
    if start is None:
        return None

    cleaned = _NON_PRICE_CHARS.sub("", text[start.start():])
    match = _LEADING_NUMBER.match(cleaned)
    number = match.group(0) if match else ""
    if not number or number == ".":
        return None

    try:
        price = Decimal(number)
    except InvalidOperation:
        return None

    if not price.is_finite() or price <= 0:
        return None
    return round_cents(price)


def coerce_price(value: Any) -> Optional[Decimal]:
    """Turn a JSON price value (number or string) into a positive Decimal.

    Embedded JSON carries prices as floats, ints or display strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return None
        if not price.is_finite() or price <= 0:
            return None
        return round_cents(price)
    if isinstance(value, str):
        return parse_price(value)
    return None


def calculate_savings(
    current_price: Decimal, original_price: Optional[Decimal] = None
) -> Optional[Savings]:
    """Compute savings amount and percent.

    No savings are reported when the original price is missing or not
    strictly above the current price.

    Args:
        current_price: Selling price
        original_price: Was/list price

    Returns:
        Savings with both figures rounded to cents, or None
    """
    if not original_price or original_price <= current_price:
        return None
    amount = round_cents(original_price - current_price)
    percent = round_cents(amount / original_price * 100)
    return Savings(amount=amount, percent=percent)


def is_featured(
    savings: Optional[Savings], threshold: Decimal = FEATURED_SAVINGS_PERCENT
) -> bool:
    """A listing is featured when its discount reaches the threshold."""
    return savings is not None and savings.percent >= threshold


def sanitize_url(url: str, base_url: str) -> str:
    """Resolve a scraped href/src against the source's base URL.

    - "https://..." is returned unchanged
    - "//cdn.host/x.jpg" -> "https://cdn.host/x.jpg"
    - "/p/123" -> base_url + "/p/123"
    - "p/123" -> base_url + "/p/123"
    """
    if url.startswith("http"):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("/"):
        return f"{base_url}{url}"
    return f"{base_url}/{url}"


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, ending with "..." when shortened."""
    if len(text) <= max_length:
        return text
    if max_length < 3:
        return text[: max(0, max_length)]
    return text[: max_length - 3] + "..."
