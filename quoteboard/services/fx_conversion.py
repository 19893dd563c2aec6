"""Amount conversion over a rate table."""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, getcontext, localcontext
from typing import Mapping

ROUNDING_PRECISION = 28


class ConversionError(ValueError):
    """Raised when an amount cannot be converted with the available rates."""

    def __init__(self, message: str, *, currency: str | None = None) -> None:
        super().__init__(message)
        self.currency = currency


def get_decimal_context():
    """Return the shared Decimal context used across conversions."""

    context = getcontext().copy()
    context.prec = ROUNDING_PRECISION
    context.rounding = ROUND_HALF_EVEN
    return context


def normalize_currency(code: str) -> str:
    """Normalize a currency code to canonical uppercase form."""

    if not code or not str(code).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(code).strip().upper()
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert input into a Decimal using the shared context."""

    with localcontext(get_decimal_context()):
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def cross_rate(source: str, target: str, rates: Mapping[str, float]) -> Decimal:
    """Return how many ``target`` units one ``source`` unit buys.

    Both rates are read from the table as-is; a missing entry is an error, not
    parity.
    """

    source_code = normalize_currency(source)
    target_code = normalize_currency(target)
    source_rate = _lookup(rates, source_code)
    target_rate = _lookup(rates, target_code)
    if target_rate == 0:
        raise ConversionError(f"Rate for '{target_code}' is zero.", currency=target_code)

    with localcontext(get_decimal_context()):
        try:
            return source_rate / target_rate
        except ArithmeticError as exc:
            raise ConversionError(
                f"Cannot derive a rate from '{source_code}' to '{target_code}'.",
                currency=target_code,
            ) from exc


def convert_amount(
    amount: Decimal | int | float | str,
    source: str,
    target: str,
    rates: Mapping[str, float],
) -> Decimal:
    """Convert ``amount`` of ``source`` into ``target`` using the rate table.

    Raises:
        ConversionError: If either currency has no usable rate.
        ValueError: If the amount is invalid or the result overflows.
    """

    rate = cross_rate(source, target, rates)
    value = to_decimal(amount)
    with localcontext(get_decimal_context()):
        try:
            return value * rate
        except ArithmeticError as exc:
            raise ValueError(f"Amount {amount} is out of range for conversion.") from exc


def _lookup(rates: Mapping[str, float], code: str) -> Decimal:
    try:
        value = rates[code]
    except KeyError as exc:
        raise ConversionError(f"No rate available for '{code}'.", currency=code) from exc
    return to_decimal(value)
