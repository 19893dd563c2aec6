"""Mock provider implementation for testing and local development."""

from __future__ import annotations

from collections.abc import Iterable

from quoteboard.utils.datetime import format_provider_timestamp, utc_now

from ..services.currency_registry import registry
from .base import BaseQuoteProvider
from .schemas import Quote, QuoteFetchResult

# Approximate BRL prices, good enough for offline development.
MOCK_BIDS: dict[str, float] = {
    "USD": 5.4321,
    "EUR": 5.9012,
    "GBP": 6.8765,
    "JPY": 0.0362,
    "CAD": 3.9543,
    "AUD": 3.5678,
    "CHF": 6.1234,
    "CNY": 0.7512,
}
MOCK_SPREAD = 0.0015


class MockQuoteProvider(BaseQuoteProvider):
    """Deterministic provider returning synthetic quotes."""

    name = "mock"

    def fetch_latest(self, codes: Iterable[str]) -> QuoteFetchResult:
        now = utc_now()
        quotes = [
            Quote(
                currency=code,
                bid=MOCK_BIDS[code],
                ask=MOCK_BIDS[code] + MOCK_SPREAD,
                pct_change=0.0,
                provider_timestamp=format_provider_timestamp(now),
                cached_at=now,
            )
            for code in registry.filter_tracked(codes)
            if code in MOCK_BIDS
        ]
        return QuoteFetchResult(quotes=tuple(quotes))
