"""Helper factories and doubles for quotes, clocks, providers and stores."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from quoteboard.providers.base import BaseQuoteProvider
from quoteboard.providers.schemas import Quote, QuoteFetchResult

DEFAULT_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def make_quote(
    currency: str = "USD",
    bid: float = 5.4321,
    ask: float | None = None,
    pct_change: float = 0.12,
    provider_timestamp: str = "2026-10-18 11:59:30",
    cached_at: datetime | None = None,
) -> Quote:
    """Return a Quote with sensible defaults."""

    return Quote(
        currency=currency,
        bid=bid,
        ask=bid + 0.0015 if ask is None else ask,
        pct_change=pct_change,
        provider_timestamp=provider_timestamp,
        cached_at=cached_at or DEFAULT_NOW,
    )


def make_quotes(bids: dict[str, float], cached_at: datetime | None = None) -> list[Quote]:
    return [make_quote(code, bid, cached_at=cached_at) for code, bid in bids.items()]


class FrozenClock:
    """Manually advanced clock usable wherever a ``utc_now`` callable is expected."""

    def __init__(self, start: datetime = DEFAULT_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class StubQuoteProvider(BaseQuoteProvider):
    """Provider that replays queued results and records every call."""

    name = "stub"

    def __init__(
        self,
        results: Iterable[QuoteFetchResult] = (),
        *,
        delay: float = 0.0,
    ) -> None:
        self._results: deque[QuoteFetchResult] = deque(results)
        self._delay = delay
        self._lock = threading.Lock()
        self.calls: list[tuple[str, ...]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def fetch_latest(self, codes: Iterable[str]) -> QuoteFetchResult:
        with self._lock:
            self.calls.append(tuple(codes))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                time.sleep(self._delay)
            with self._lock:
                if not self._results:
                    return QuoteFetchResult.unavailable("stub exhausted")
                return self._results.popleft()
        finally:
            with self._lock:
                self.in_flight -= 1


class InMemoryQuoteStore:
    """Dict-backed stand-in for ``QuoteStore`` with the same stamping rules."""

    def __init__(self, clock: FrozenClock, quotes: Iterable[Quote] = ()) -> None:
        self._clock = clock
        self._rows: dict[str, Quote] = {quote.currency: quote for quote in quotes}
        self.writes = 0

    def get_all(self) -> list[Quote]:
        return [self._rows[code] for code in sorted(self._rows)]

    def upsert_many(self, quotes: Iterable[Quote]) -> list[Quote]:
        now = self._clock()
        stored = []
        for quote in quotes:
            previous = self._rows.get(quote.currency)
            cached_at = max(previous.cached_at, now) if previous else now
            row = Quote(
                currency=quote.currency,
                bid=quote.bid,
                ask=quote.ask,
                pct_change=quote.pct_change,
                provider_timestamp=quote.provider_timestamp,
                cached_at=cached_at,
            )
            self._rows[quote.currency] = row
            stored.append(row)
        self.writes += 1
        return stored
