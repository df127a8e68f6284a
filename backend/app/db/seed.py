"""Database seeding script for development.

Creates the tables and the stores backing the built-in scraper sources.
A source only runs once its store exists, so a fresh database needs this
before the first scrape.

Run with: python -m app.db.seed
"""

import asyncio

import structlog

from app.db.session import async_session_factory, engine
from app.models import Base
from app.services.store_service import StoreService

logger = structlog.get_logger(__name__)


DEFAULT_STORES = [
    {"slug": "walmart", "name": "Walmart", "website_url": "https://www.walmart.com"},
    {"slug": "newegg", "name": "Newegg", "website_url": "https://www.newegg.com"},
    {"slug": "amazon", "name": "Amazon", "website_url": "https://www.amazon.com"},
]


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_stores(session_factory=async_session_factory) -> int:
    """Create any missing default store.

    Args:
        session_factory: Async session factory to seed through

    Returns:
        Number of stores now present out of DEFAULT_STORES
    """
    async with session_factory() as session:
        service = StoreService(session)
        for store_data in DEFAULT_STORES:
            await service.ensure_store(**store_data)
    return len(DEFAULT_STORES)


async def main() -> None:
    await create_tables()
    count = await seed_stores()
    logger.info("seed_complete", stores=count)


if __name__ == "__main__":
    asyncio.run(main())
