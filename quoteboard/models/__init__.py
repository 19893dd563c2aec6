"""SQLAlchemy ORM models for the quote cache."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from quoteboard.database import Base


class CachedQuote(Base):
    """Last known quote for one non-reference currency."""

    __tablename__ = "quotes"

    code: Mapped[str] = mapped_column(String(12), primary_key=True)
    bid: Mapped[float] = mapped_column(Float, nullable=False)
    ask: Mapped[float] = mapped_column(Float, nullable=False)
    pct_change: Mapped[float] = mapped_column(Float, nullable=False)
    provider_timestamp: Mapped[str] = mapped_column(String(64), nullable=False)
    cached_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<CachedQuote code={self.code} bid={self.bid} cached_at={self.cached_at}>"
