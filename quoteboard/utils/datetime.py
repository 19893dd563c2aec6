"""Shared datetime helpers for enforcing UTC awareness."""

from __future__ import annotations

from datetime import UTC, datetime

PROVIDER_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC.

    Naive values are assumed to already be UTC, which is how SQLite hands
    back ``DateTime(timezone=True)`` columns.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(UTC)


def format_provider_timestamp(value: datetime) -> str:
    """Render a datetime the way the quote provider reports ``create_date``."""

    return ensure_utc(value).strftime(PROVIDER_TIMESTAMP_FORMAT)
