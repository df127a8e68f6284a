"""Deal persistence for the scraper pipeline.

This service creates, refreshes and expires scraped deals. Manual deals
(source="manual") are never returned or modified by anything here.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import select, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.deal import Deal, DEAL_SOURCE_SCRAPER
from app.scrapers.base import ScrapedListing
from app.scrapers.utils.normalizer import Savings

logger = structlog.get_logger(__name__)


class DealService:
    """Service for reconciling scraped listings with persisted deals.

    Every write method commits on its own, so one listing is one unit of
    work. Callers roll back on failure.
    """

    def __init__(self, db: AsyncSession):
        """Initialize deal service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="deal_service")

    async def get_by_external_id(self, external_id: str, store_id: UUID) -> Optional[Deal]:
        """Look up a deal by its natural key, active or not."""
        result = await self.db.execute(
            select(Deal).where(and_(
                Deal.external_id == external_id,
                Deal.store_id == store_id,
            ))
        )
        return result.scalars().first()

    async def create_scraped_deal(
        self,
        store_id: UUID,
        listing: ScrapedListing,
        savings: Optional[Savings],
        is_featured: bool,
    ) -> Deal:
        """Insert a new active scraper deal.

        Args:
            store_id: Owning store
            listing: Extracted listing
            savings: Derived savings, if the listing is discounted
            is_featured: Whether the discount reaches the featured threshold

        Returns:
            The persisted Deal
        """
        deal = Deal(
            store_id=store_id,
            external_id=listing.external_id,
            title=listing.title,
            description=listing.description,
            image_url=listing.image_url,
            current_price=listing.current_price,
            original_price=listing.original_price,
            savings_amount=savings.amount if savings else None,
            savings_percent=savings.percent if savings else None,
            product_url=listing.product_url,
            affiliate_url=listing.product_url,
            brand=listing.brand,
            sku=listing.sku,
            is_active=True,
            is_featured=is_featured,
            source=DEAL_SOURCE_SCRAPER,
        )
        self.db.add(deal)
        await self.db.commit()

        self.logger.debug("scraped_deal_created", external_id=listing.external_id)
        return deal

    async def update_scraped_deal(
        self,
        deal: Deal,
        listing: ScrapedListing,
        savings: Optional[Savings],
        is_featured: bool,
    ) -> Deal:
        """Refresh an existing deal from a newer listing and reactivate it.

        Prices and savings always follow the listing, so is_featured stays
        consistent with savings_percent. Image, brand and sku keep their
        stored values when the listing lacks them.
        """
        deal.title = listing.title
        deal.description = listing.description
        deal.current_price = listing.current_price
        deal.product_url = listing.product_url
        deal.affiliate_url = listing.product_url
        deal.is_featured = is_featured

        if listing.image_url:
            deal.image_url = listing.image_url
        deal.original_price = listing.original_price
        deal.savings_amount = savings.amount if savings else None
        deal.savings_percent = savings.percent if savings else None
        if listing.brand:
            deal.brand = listing.brand
        if listing.sku:
            deal.sku = listing.sku

        # Seen again, so it is live regardless of earlier expiry
        deal.is_active = True
        deal.expires_at = None
        deal.source = DEAL_SOURCE_SCRAPER
        deal.updated_at = utcnow()

        await self.db.commit()

        self.logger.debug("scraped_deal_updated", external_id=listing.external_id)
        return deal

    async def get_active_scraper_deals(self, store_id: UUID) -> List[Tuple[UUID, Optional[str]]]:
        """Return (id, external_id) for every active scraper deal of a store."""
        result = await self.db.execute(
            select(Deal.id, Deal.external_id).where(and_(
                Deal.store_id == store_id,
                Deal.is_active == True,
                Deal.source == DEAL_SOURCE_SCRAPER,
            ))
        )
        return [(row.id, row.external_id) for row in result.all()]

    async def expire_deal(self, deal_id: UUID, now: Optional[datetime] = None) -> None:
        """Deactivate a deal and stamp its expiry time."""
        now = now or utcnow()
        await self.db.execute(
            update(Deal)
            .where(Deal.id == deal_id)
            .values(is_active=False, expires_at=now, updated_at=now)
        )
        await self.db.commit()
