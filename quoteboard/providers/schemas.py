"""Dataclasses describing normalized quote provider payloads."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from quoteboard.utils.datetime import ensure_utc


def _normalize_code(code: str) -> str:
    normalized = str(code).strip().upper()
    if not normalized or not normalized.isascii():
        raise ValueError(f"Currency code must be non-empty ASCII: {code!r}")
    return normalized


@dataclass(frozen=True)
class Quote:
    """One currency's latest quote against the reference currency."""

    currency: str
    bid: float
    ask: float
    pct_change: float
    provider_timestamp: str
    cached_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", _normalize_code(self.currency))
        for name in ("bid", "ask", "pct_change"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"Quote {name} must be a finite number, got {value!r}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "provider_timestamp", str(self.provider_timestamp))
        object.__setattr__(self, "cached_at", ensure_utc(self.cached_at))


@dataclass(frozen=True)
class QuoteFetchResult:
    """Outcome of a provider call.

    ``error`` is set when the provider could not be reached or answered with
    something unusable; an available result may still carry zero quotes.
    """

    quotes: tuple[Quote, ...] = field(default_factory=tuple)
    error: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quotes", tuple(self._normalize_quotes(self.quotes)))

    @classmethod
    def unavailable(cls, reason: str) -> QuoteFetchResult:
        return cls(quotes=(), error=reason or "provider unavailable")

    @property
    def available(self) -> bool:
        return self.error is None

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(quote.currency for quote in self.quotes)

    @staticmethod
    def _normalize_quotes(quotes: Iterable[Quote]) -> Iterable[Quote]:
        for quote in quotes:
            if not isinstance(quote, Quote):
                raise TypeError("quotes must contain Quote instances")
            yield quote
