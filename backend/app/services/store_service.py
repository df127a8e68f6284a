"""Store lookups used to map scraper sources onto retailers."""

from typing import Dict, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.store import Store

logger = structlog.get_logger(__name__)


class StoreService:
    """Read and seed Store rows."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logger.bind(service="store_service")

    async def get_active_store_ids(self) -> Dict[str, UUID]:
        """Map slug -> id for every active store."""
        result = await self.db.execute(
            select(Store.slug, Store.id).where(Store.is_active == True)
        )
        return {row.slug: row.id for row in result.all()}

    async def get_by_slug(self, slug: str) -> Optional[Store]:
        result = await self.db.execute(select(Store).where(Store.slug == slug))
        return result.scalar_one_or_none()

    async def ensure_store(
        self,
        slug: str,
        name: str,
        website_url: Optional[str] = None,
    ) -> Store:
        """Create the store for slug unless it already exists.

        Returns:
            The existing or newly created Store
        """
        store = await self.get_by_slug(slug)
        if store:
            return store

        store = Store(name=name, slug=slug, website_url=website_url, is_active=True)
        self.db.add(store)
        await self.db.commit()

        self.logger.info("store_created", slug=slug)
        return store
