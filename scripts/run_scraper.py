"""Manual scraper runner for testing and debugging extractors.

Runs one source's extractor and prints what it found. With --persist the
full coordinator runs instead, writing deals and a run log to the
configured database.

Usage:
    python scripts/run_scraper.py --source newegg
    python scripts/run_scraper.py --source walmart --limit 5
    python scripts/run_scraper.py --source walmart --source newegg --persist
"""

import argparse
import asyncio

from app.db.session import async_session_factory
from app.scrapers.coordinator import ScrapeCoordinator
from app.scrapers.register_adapters import KNOWN_SOURCES, build_default_factory
from app.scrapers.utils.normalizer import calculate_savings


async def preview_source(source: str, limit: int = 10) -> None:
    """Run a single extractor and display its listings without saving them."""
    extractor = build_default_factory().create(source)

    print(f"\n{'='*70}")
    print(f"  Running {source.upper()} extractor")
    print(f"{'='*70}\n")

    result = await extractor.extract()
    print(f"  Status: {result.status}  ({result.duration_ms} ms)")
    if result.error:
        print(f"  Error: {result.error}")

    for i, listing in enumerate(result.listings[:limit], 1):
        savings = calculate_savings(listing.current_price, listing.original_price)
        print(f"[{i}] {listing.title}")
        print(f"    Price: ${listing.current_price}")
        if listing.original_price:
            print(f"    Was: ${listing.original_price}")
        if savings:
            print(f"    Savings: ${savings.amount} ({savings.percent}%)")
        if listing.brand:
            print(f"    Brand: {listing.brand}")
        print(f"    URL: {listing.product_url[:80]}")
        print()

    print(f"  Total listings: {len(result.listings)}, displayed: {min(limit, len(result.listings))}\n")


async def persist_sources(sources) -> None:
    """Run the coordinator for sources and print the totals."""
    async with async_session_factory() as session:
        outcome = await ScrapeCoordinator(session).run_scrapers(sources)

    for result in outcome.results:
        line = f"  {result.source:<10} {result.status:<8} {len(result.listings):>4} listings"
        if result.error:
            line += f"  ({result.error})"
        print(line)
    print(
        f"\n  found={outcome.total_found} added={outcome.total_added} "
        f"updated={outcome.total_updated} expired={outcome.total_expired}\n"
    )


def main():
    parser = argparse.ArgumentParser(description="Run DealScout extractors manually")
    parser.add_argument("--source", action="append", choices=KNOWN_SOURCES, help="Source to run (repeatable)")
    parser.add_argument("--limit", type=int, default=10, help="Listings to display per source")
    parser.add_argument("--persist", action="store_true", help="Run the coordinator and save results")
    args = parser.parse_args()

    sources = args.source or list(KNOWN_SOURCES)
    if args.persist:
        asyncio.run(persist_sources(sources))
        return

    for source in sources:
        asyncio.run(preview_source(source, args.limit))


if __name__ == "__main__":
    main()
