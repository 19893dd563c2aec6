"""Closed set of supported currency codes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class Currency(str, Enum):
    """Every currency the quote board knows about."""

    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"
    CHF = "CHF"
    CNY = "CNY"


REFERENCE_CURRENCY = Currency.BRL


@dataclass(frozen=True)
class CurrencyRegistry:
    """Provides membership tests over a fixed set of codes.

    ``reference`` is the currency every quote is expressed against. It is part
    of ``codes`` but never tracked: no quote is fetched or stored for it.
    """

    codes: tuple[str, ...]
    reference: str

    def __post_init__(self) -> None:
        if self.reference not in self.codes:
            raise ValueError(f"Reference currency '{self.reference}' must be a supported code.")

    @property
    def tracked(self) -> tuple[str, ...]:
        """Codes that have quotes, in declaration order."""

        return tuple(code for code in self.codes if code != self.reference)

    def is_allowed(self, code: str | None) -> bool:
        """Check if the given code is a supported currency."""

        return _normalize(code) in self.codes

    def is_tracked(self, code: str | None) -> bool:
        """Check if the given code is a supported, non-reference currency."""

        normalized = _normalize(code)
        return normalized in self.codes and normalized != self.reference

    def filter_tracked(self, codes: Iterable[str]) -> tuple[str, ...]:
        """Return the tracked subset of ``codes`` in registry order."""

        requested = {_normalize(code) for code in codes}
        return tuple(code for code in self.tracked if code in requested)


def _normalize(code: str | None) -> str:
    if code is None:
        return ""
    return str(code).strip().upper()


registry = CurrencyRegistry(
    codes=tuple(currency.value for currency in Currency),
    reference=REFERENCE_CURRENCY.value,
)


def init_registry(app) -> CurrencyRegistry:
    """Attach the registry to the Flask app."""

    app.extensions["currency_registry"] = registry
    return registry
