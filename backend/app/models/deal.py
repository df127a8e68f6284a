"""Deal model representing one listing shown on the site."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, ForeignKey, Boolean, Numeric, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.store import Store


DEAL_SOURCE_MANUAL = "manual"
DEAL_SOURCE_SCRAPER = "scraper"


class Deal(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A product/price listing, either curated by an admin or scraped.

    Scraped deals are keyed by (external_id, store_id). They are never deleted
    by the scraper: a deal missing from the latest run is deactivated with
    expires_at set, and reactivated when it shows up again. Manual deals are
    never touched by the scraper.
    """

    __tablename__ = "deals"

    store_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Was/list price"
    )
    current_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Current selling price"
    )
    savings_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    savings_percent: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2),
        nullable=True,
        comment="Discount as percentage (0-100)"
    )

    # Links
    product_url: Mapped[str] = mapped_column(Text, nullable=False)
    affiliate_url: Mapped[str] = mapped_column(Text, nullable=False)

    # Identity
    external_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="'{source}-{native id}' for scraped deals, null for manual ones"
    )
    sku: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DEAL_SOURCE_MANUAL,
        comment="'manual' or 'scraper'"
    )

    __table_args__ = (
        Index("idx_deals_external_store", "external_id", "store_id"),
        Index(
            "idx_deals_store_active_scraper",
            "store_id",
            postgresql_where=text("is_active = true AND source = 'scraper'")
        ),
    )

    store: Mapped["Store"] = relationship(back_populates="deals")

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title[:50]}...', current_price={self.current_price}, is_active={self.is_active})>"
