"""Derive conversion rates from cached quotes."""

from __future__ import annotations

from collections.abc import Iterable

from quoteboard.providers.schemas import Quote

from .currency_registry import registry

RateTable = dict[str, float]


def build_rate_table(quotes: Iterable[Quote], reference: str | None = None) -> RateTable:
    """Map each quoted currency to its bid against the reference currency.

    The reference is always ``1.0``. Currencies without a quote are left out
    rather than defaulted, so consumers can tell a missing rate apart from
    parity.
    """

    reference_code = (reference or registry.reference).upper()
    table: RateTable = {reference_code: 1.0}
    for quote in quotes:
        if quote.currency == reference_code:
            continue
        table[quote.currency] = quote.bid
    return table
