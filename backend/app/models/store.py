"""Store model representing a retailer whose deals are listed."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.deal import Deal


class Store(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Retailer record.

    Scraper sources are matched to stores by slug (source "newegg" writes into
    the store whose slug is "newegg"). A source without an active store is not run.
    """

    __tablename__ = "stores"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False, comment="URL-friendly identifier, equals the scraper source name")
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    affiliate_program: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    deals: Mapped[list["Deal"]] = relationship(back_populates="store", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Store(id={self.id}, slug='{self.slug}', name='{self.name}')>"
