"""Persistent cache of the latest quote per currency."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from quoteboard.database import get_session
from quoteboard.errors import StorageError
from quoteboard.models import CachedQuote
from quoteboard.providers.schemas import Quote
from quoteboard.utils.datetime import ensure_utc, utc_now

from .currency_registry import CurrencyRegistry, registry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class QuoteStore:
    """Read and upsert cached quotes, one row per tracked currency.

    The store owns ``cached_at``: every upsert stamps rows with the store's
    clock, never with the provider's timestamp, and a row's ``cached_at`` never
    moves backwards.
    """

    def __init__(
        self,
        session: scoped_session | Session | None = None,
        *,
        currency_registry: CurrencyRegistry = registry,
        clock: Clock = utc_now,
    ) -> None:
        self._session = session if session is not None else get_session()
        self._registry = currency_registry
        self._clock = clock

    def get_all(self) -> list[Quote]:
        """Return every cached quote for a tracked currency."""

        session = self._session
        statement = (
            select(CachedQuote)
            .order_by(CachedQuote.code)
            .execution_options(populate_existing=True)
        )
        try:
            rows = session.execute(statement).scalars().all()
            quotes = [self._to_quote(row) for row in rows if self._keep(row)]
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError("Unable to read cached quotes.") from exc
        return quotes

    def upsert_many(self, quotes: Iterable[Quote]) -> list[Quote]:
        """Insert or replace one row per quote and return what was stored.

        Raises:
            ValueError: If a quote is for the reference or an unsupported currency.
            StorageError: If the database cannot be written.
        """

        latest: dict[str, Quote] = {}
        for quote in quotes:
            if not self._registry.is_tracked(quote.currency):
                raise ValueError(f"Cannot cache a quote for '{quote.currency}'.")
            latest[quote.currency] = quote
        if not latest:
            return []

        now = ensure_utc(self._clock())
        session = self._session
        try:
            rows = [self._upsert(session, quote, now) for quote in latest.values()]
            session.commit()
            stored = [self._to_quote(row) for row in rows]
        except SQLAlchemyError as exc:
            session.rollback()
            raise StorageError("Unable to write cached quotes.") from exc

        logger.debug("Cached %s quotes at %s", len(stored), now.isoformat())
        return stored

    def _upsert(self, session, quote: Quote, now: datetime) -> CachedQuote:
        existing = session.get(CachedQuote, quote.currency)
        if existing is None:
            row = CachedQuote(code=quote.currency, cached_at=now)
            session.add(row)
        else:
            row = existing
            row.cached_at = max(ensure_utc(existing.cached_at), now)
        row.bid = quote.bid
        row.ask = quote.ask
        row.pct_change = quote.pct_change
        row.provider_timestamp = quote.provider_timestamp
        return row

    def _keep(self, row: CachedQuote) -> bool:
        if self._registry.is_tracked(row.code):
            return True
        logger.warning("Ignoring cached row for unsupported currency '%s'", row.code)
        return False

    @staticmethod
    def _to_quote(row: CachedQuote) -> Quote:
        return Quote(
            currency=row.code,
            bid=row.bid,
            ask=row.ask,
            pct_change=row.pct_change,
            provider_timestamp=row.provider_timestamp,
            cached_at=row.cached_at,
        )
