"""Scraper utilities for price parsing, identity rotation, pacing and JSON search."""

from .user_agents import pick_user_agent, browser_headers, USER_AGENTS
from .normalizer import (
    Savings,
    parse_price,
    coerce_price,
    calculate_savings,
    is_featured,
    sanitize_url,
    truncate,
    round_cents,
)
from .delays import jittered_delay
from .json_tree import find_product_array, find_price_info, find_offer_prices
from .retry import fetch_retrying


__all__ = [
    # User agents
    "pick_user_agent",
    "browser_headers",
    "USER_AGENTS",
    # Normalization
    "Savings",
    "parse_price",
    "coerce_price",
    "calculate_savings",
    "is_featured",
    "sanitize_url",
    "truncate",
    "round_cents",
    # Pacing
    "jittered_delay",
    # Embedded JSON
    "find_product_array",
    "find_price_info",
    "find_offer_prices",
    # Retry
    "fetch_retrying",
]
