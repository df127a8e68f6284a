"""Append-only record of scraper runs."""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Integer, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDPrimaryKeyMixin


class ScraperLog(UUIDPrimaryKeyMixin, Base):
    """One row per source per coordinator run.

    Written once when the source finishes and never updated afterwards.
    Counts are for this source only.
    """

    __tablename__ = "scraper_logs"

    source: Mapped[str] = mapped_column(String(50), nullable=False, comment="'walmart', 'newegg', 'amazon', ...")
    status: Mapped[str] = mapped_column(String(20), nullable=False, comment="'success', 'partial' or 'failed'")

    deals_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deals_added: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deals_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deals_expired: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="Extraction wall-clock time in milliseconds")

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_scraper_logs_source", "source"),
        Index("idx_scraper_logs_started_at", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<ScraperLog(source='{self.source}', status='{self.status}', started_at={self.started_at})>"
