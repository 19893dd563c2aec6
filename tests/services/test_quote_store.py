from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from quoteboard.database import SessionLocal
from quoteboard.errors import StorageError
from quoteboard.models import CachedQuote
from quoteboard.services.quote_store import QuoteStore
from tests.factories import DEFAULT_NOW, FrozenClock, make_quote, make_quotes


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def store(quote_store, clock) -> QuoteStore:
    return QuoteStore(SessionLocal, clock=clock)


def test_empty_store_returns_no_quotes(store):
    assert store.get_all() == []


def test_upsert_stamps_rows_with_store_clock(store, clock):
    provider_time = DEFAULT_NOW - timedelta(hours=3)

    stored = store.upsert_many([make_quote("USD", 5.43, cached_at=provider_time)])

    assert stored[0].cached_at == clock.now
    assert store.get_all()[0].cached_at == clock.now


def test_upsert_replaces_existing_row(store, clock):
    store.upsert_many(make_quotes({"USD": 5.40, "EUR": 5.90}))
    clock.advance(90)

    store.upsert_many([make_quote("USD", 5.50, provider_timestamp="2026-10-18 12:01:00")])

    quotes = {quote.currency: quote for quote in store.get_all()}
    assert len(quotes) == 2
    assert quotes["USD"].bid == pytest.approx(5.50)
    assert quotes["USD"].provider_timestamp == "2026-10-18 12:01:00"
    assert quotes["USD"].cached_at == DEFAULT_NOW + timedelta(seconds=90)
    assert quotes["EUR"].cached_at == DEFAULT_NOW


def test_upsert_is_idempotent_except_for_cached_at(store, clock):
    quotes = make_quotes({"USD": 5.43, "JPY": 0.0362})
    store.upsert_many(quotes)
    clock.advance(5)
    store.upsert_many(quotes)

    rows = store.get_all()
    assert [row.currency for row in rows] == ["JPY", "USD"]
    assert all(row.cached_at == DEFAULT_NOW + timedelta(seconds=5) for row in rows)
    assert SessionLocal().query(CachedQuote).count() == 2


def test_cached_at_never_moves_backwards(store, clock):
    store.upsert_many([make_quote("USD")])
    clock.now = DEFAULT_NOW - timedelta(minutes=10)

    store.upsert_many([make_quote("USD", 5.50)])

    row = store.get_all()[0]
    assert row.bid == pytest.approx(5.50)
    assert row.cached_at == DEFAULT_NOW


def test_duplicate_codes_keep_last_quote(store):
    store.upsert_many([make_quote("USD", 5.40), make_quote("usd", 5.45)])

    rows = store.get_all()
    assert len(rows) == 1
    assert rows[0].bid == pytest.approx(5.45)


@pytest.mark.parametrize("code", ["BRL", "XYZ"])
def test_upsert_rejects_reference_and_unknown_codes(store, code):
    with pytest.raises(ValueError):
        store.upsert_many([make_quote(code)])

    assert store.get_all() == []


def test_upsert_with_nothing_is_a_no_op(store):
    assert store.upsert_many([]) == []


def test_unsupported_rows_are_ignored_on_read(store):
    session = SessionLocal()
    session.add(
        CachedQuote(
            code="XAU",
            bid=1.0,
            ask=1.0,
            pct_change=0.0,
            provider_timestamp="2026-10-18 12:00:00",
            cached_at=DEFAULT_NOW,
        )
    )
    session.commit()
    store.upsert_many([make_quote("USD")])

    assert [quote.currency for quote in store.get_all()] == ["USD"]


def test_read_failure_raises_storage_error():
    session = MagicMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))

    with pytest.raises(StorageError) as excinfo:
        QuoteStore(session).get_all()

    session.rollback.assert_called_once()
    assert excinfo.value.status_code == 503


def test_write_failure_raises_storage_error():
    session = MagicMock()
    session.get.return_value = None
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

    with pytest.raises(StorageError):
        QuoteStore(session, clock=lambda: datetime(2026, 10, 18, tzinfo=UTC)).upsert_many(
            [make_quote("USD")]
        )

    session.rollback.assert_called_once()
