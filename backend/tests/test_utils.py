"""Tests for scraper utilities: price parsing, savings, URLs, pacing, JSON search."""

import asyncio
from decimal import Decimal

import pytest
from bs4 import BeautifulSoup

from app.scrapers.utils import delays
from app.scrapers.utils.json_tree import (
    NEXT_DATA_SELECTOR,
    find_offer_prices,
    find_price_info,
    find_product_array,
    load_script_json,
)
from app.scrapers.utils.normalizer import (
    Savings,
    calculate_savings,
    coerce_price,
    is_featured,
    parse_price,
    sanitize_url,
    truncate,
)
from app.scrapers.utils.user_agents import USER_AGENTS, browser_headers, pick_user_agent


# ============================================================================
# TESTS: PRICE PARSING
# ============================================================================

class TestParsePrice:
    """Tests for parse_price."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("$1,299.00", Decimal("1299.00")),
            ("Now $49.99", Decimal("49.99")),
            ("899.99", Decimal("899.99")),
            ("$5", Decimal("5.00")),
            ("12.345", Decimal("12.35")),
            ("USD 1 024.50", Decimal("1024.50")),
            ("Rs.5", Decimal("5.00")),
            ("Rs. 1,299", Decimal("1299.00")),
            ("Sale: $.99", Decimal("0.99")),
            ("EUR 19.90 incl. VAT", Decimal("19.90")),
        ],
    )
    def test_accepts_noisy_prices(self, text, expected):
        assert parse_price(text) == expected

    @pytest.mark.parametrize("text", ["free", "", "$0.00", None, "...", "Out of stock"])
    def test_rejects_non_positive_or_missing(self, text):
        assert parse_price(text) is None

    def test_result_has_two_decimal_places(self):
        assert parse_price("$7.1").as_tuple().exponent == -2


class TestCoercePrice:
    """Tests for coerce_price on embedded JSON values."""

    def test_float(self):
        assert coerce_price(499.99) == Decimal("499.99")

    def test_int(self):
        assert coerce_price(278) == Decimal("278.00")

    def test_display_string(self):
        assert coerce_price("$1,099.00") == Decimal("1099.00")

    @pytest.mark.parametrize("value", [None, True, 0, -5, {"price": 1}, float("nan")])
    def test_rejects_invalid(self, value):
        assert coerce_price(value) is None


# ============================================================================
# TESTS: SAVINGS
# ============================================================================

class TestCalculateSavings:
    """Tests for calculate_savings and is_featured."""

    def test_no_original_price(self):
        assert calculate_savings(Decimal("10.00")) is None

    def test_original_not_above_current(self):
        assert calculate_savings(Decimal("10.00"), Decimal("10.00")) is None
        assert calculate_savings(Decimal("10.00"), Decimal("9.99")) is None

    def test_amount_and_percent(self):
        savings = calculate_savings(Decimal("899.99"), Decimal("1199.99"))
        assert savings == Savings(amount=Decimal("300.00"), percent=Decimal("25.00"))

    def test_percent_rounded_to_cents(self):
        savings = calculate_savings(Decimal("2.00"), Decimal("3.00"))
        assert savings.amount == Decimal("1.00")
        assert savings.percent == Decimal("33.33")

    def test_featured_at_threshold(self):
        savings = calculate_savings(Decimal("80.00"), Decimal("100.00"))
        assert savings.percent == Decimal("20.00")
        assert is_featured(savings) is True

    def test_not_featured_below_threshold(self):
        savings = calculate_savings(Decimal("80.01"), Decimal("100.00"))
        assert is_featured(savings) is False

    def test_not_featured_without_savings(self):
        assert is_featured(None) is False


# ============================================================================
# TESTS: URLS AND TEXT
# ============================================================================

class TestSanitizeUrl:
    """Tests for sanitize_url."""

    BASE = "https://www.newegg.com"

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://www.newegg.com/p/N82E1", "https://www.newegg.com/p/N82E1"),
            ("http://example.com/x", "http://example.com/x"),
            ("//c1.neweggimages.com/a.jpg", "https://c1.neweggimages.com/a.jpg"),
            ("/p/N82E1", "https://www.newegg.com/p/N82E1"),
            ("p/N82E1", "https://www.newegg.com/p/N82E1"),
        ],
    )
    def test_resolves_against_base(self, url, expected):
        assert sanitize_url(url, self.BASE) == expected

    @pytest.mark.parametrize("url", ["//cdn.host/x.jpg", "/ip/123", "ip/123", "https://a.b/c"])
    def test_idempotent(self, url):
        once = sanitize_url(url, self.BASE)
        assert sanitize_url(once, self.BASE) == once


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_length_unchanged(self):
        assert truncate("a" * 10, 10) == "a" * 10

    def test_long_text_cut_with_ellipsis(self):
        result = truncate("a" * 600, 500)
        assert len(result) == 500
        assert result.endswith("...")

    @pytest.mark.parametrize("max_length", [0, 1, 2, 3, 4])
    def test_small_bounds_never_exceeded(self, max_length):
        assert len(truncate("abcdef", max_length)) <= max_length

    def test_bound_below_ellipsis_is_plain_cut(self):
        assert truncate("abcdef", 2) == "ab"
        assert truncate("abcdef", 3) == "..."


# ============================================================================
# TESTS: IDENTITY AND PACING
# ============================================================================

class TestUserAgents:
    """Tests for user-agent rotation."""

    def test_pick_from_pool(self):
        for _ in range(20):
            assert pick_user_agent() in USER_AGENTS

    def test_browser_headers(self):
        headers = browser_headers()
        assert headers["User-Agent"] in USER_AGENTS
        assert headers["Accept-Language"] == "en-US,en;q=0.5"

    def test_only_decodable_encodings_advertised(self):
        encodings = {part.strip() for part in browser_headers()["Accept-Encoding"].split(",")}
        assert encodings == {"gzip", "deflate"}


class TestJitteredDelay:
    """Tests for jittered_delay."""

    async def test_sleeps_within_range(self, monkeypatch):
        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)

        monkeypatch.setattr(delays.asyncio, "sleep", fake_sleep)

        for _ in range(25):
            await delays.jittered_delay(500, 1000)

        assert len(slept) == 25
        assert all(0.5 <= s <= 1.0 for s in slept)

    async def test_zero_range(self):
        # Real sleep, but zero length
        await asyncio.wait_for(delays.jittered_delay(0, 0), timeout=1)


# ============================================================================
# TESTS: EMBEDDED JSON SEARCH
# ============================================================================

def _nest(value, levels):
    for _ in range(levels):
        value = {"child": value}
    return value


class TestFindProductArray:
    """Tests for the bounded product-array search."""

    PRODUCTS = [{"usItemId": "1", "name": "A"}, {"usItemId": "2", "name": "B"}]

    def test_finds_nested_array(self):
        assert find_product_array(_nest(self.PRODUCTS, 5)) == self.PRODUCTS

    def test_accepts_product_id_and_title(self):
        items = [{"productId": "9", "title": "T"}]
        assert find_product_array({"x": items}) == items

    def test_first_match_wins(self):
        first = [{"usItemId": "1", "name": "first"}]
        second = [{"usItemId": "2", "name": "second"}]
        assert find_product_array({"a": first, "b": second}) == first

    def test_depth_bound(self):
        assert find_product_array(_nest(self.PRODUCTS, 10)) == self.PRODUCTS
        assert find_product_array(_nest(self.PRODUCTS, 11)) == []

    def test_no_products(self):
        assert find_product_array({"items": [{"id": "1"}, {"name": "x"}]}) == []


class TestPriceLookups:
    """Tests for priceInfo and JSON-LD offer lookups."""

    def test_price_info_was_price(self):
        data = {"product": {"priceInfo": {"currentPrice": {"price": 10}, "wasPrice": {"price": 15}}}}
        assert find_price_info(data) == (Decimal("10.00"), Decimal("15.00"))

    def test_price_info_list_price_fallback(self):
        data = {"priceInfo": {"currentPrice": {"price": "8.50"}, "listPrice": {"price": "12.00"}}}
        assert find_price_info(data) == (Decimal("8.50"), Decimal("12.00"))

    def test_price_info_requires_discount(self):
        data = {"priceInfo": {"currentPrice": {"price": 10}, "wasPrice": {"price": 10}}}
        assert find_price_info(data) is None

    def test_offer_prices(self):
        json_ld = {"@type": "Product", "offers": {"price": "549.00", "highPrice": "899.00"}}
        assert find_offer_prices(json_ld) == (Decimal("549.00"), Decimal("899.00"))

    def test_offer_prices_in_list(self):
        json_ld = [{"offers": [{"price": 5, "highPrice": 7}]}]
        assert find_offer_prices(json_ld) == (Decimal("5.00"), Decimal("7.00"))

    def test_offer_without_high_price(self):
        assert find_offer_prices({"offers": {"price": "5.00"}}) is None

    def test_load_script_json_invalid(self):
        soup = BeautifulSoup('<script id="__NEXT_DATA__">{not json</script>', "html.parser")
        assert load_script_json(soup, NEXT_DATA_SELECTOR) is None

    def test_load_script_json_missing(self):
        soup = BeautifulSoup("<html></html>", "html.parser")
        assert load_script_json(soup, NEXT_DATA_SELECTOR) is None

    def test_load_script_json_too_deeply_nested(self):
        soup = BeautifulSoup(f'<script id="__NEXT_DATA__">{"[" * 100000}</script>', "html.parser")
        assert load_script_json(soup, NEXT_DATA_SELECTOR) is None
