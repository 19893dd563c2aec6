"""Validation helpers for request payloads."""

from __future__ import annotations

from quoteboard.errors import ValidationError
from quoteboard.services.currency_registry import registry


def validate_currency_code(value: str | None, *, field: str = "currency_code") -> str:
    """Ensure the provided currency code is one the registry supports."""

    if value is None or not str(value).strip():
        raise ValidationError(f"'{field}' is required.", payload={"field": field})

    normalized = str(value).strip().upper()
    if not registry.is_allowed(normalized):
        raise ValidationError(
            f"Unsupported currency code '{normalized}'. "
            f"Allowed codes: {', '.join(registry.codes)}.",
            payload={"field": field, "code": normalized},
        )

    return normalized
