from __future__ import annotations

import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from quoteboard.database import SessionLocal
from quoteboard.errors import StorageError
from quoteboard.providers.schemas import QuoteFetchResult
from quoteboard.services import refresh_controller as controller_module
from quoteboard.services.quote_store import QuoteStore
from quoteboard.services.refresh_controller import (
    RefreshController,
    RefreshDecision,
    evaluate_refresh_state,
)
from tests.factories import (
    DEFAULT_NOW,
    FrozenClock,
    InMemoryQuoteStore,
    StubQuoteProvider,
    make_quote,
    make_quotes,
)

ALL_BIDS = {
    "USD": 5.43,
    "EUR": 5.90,
    "GBP": 6.87,
    "JPY": 0.036,
    "CAD": 3.95,
    "AUD": 3.56,
    "CHF": 6.12,
    "CNY": 0.75,
}


def fresh_result(bids=None) -> QuoteFetchResult:
    return QuoteFetchResult(quotes=tuple(make_quotes(bids or ALL_BIDS)))


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


def build_controller(clock, provider, cached=()):
    store = InMemoryQuoteStore(clock, cached)
    return RefreshController(store, provider, clock=clock), store


def test_bootstrap_fetches_and_caches_everything(clock):
    provider = StubQuoteProvider([fresh_result()])
    controller, store = build_controller(clock, provider)

    served = controller.serve()

    assert served.decision is RefreshDecision.BOOTSTRAP
    assert served.provider_called and served.refreshed
    assert provider.calls == [("USD", "EUR", "GBP", "JPY", "CAD", "AUD", "CHF", "CNY")]
    assert len(served.quotes) == 8
    assert served.rates["BRL"] == 1.0
    assert served.rates["USD"] == pytest.approx(5.43)
    assert served.last_cached_at == DEFAULT_NOW
    assert served.can_refresh is False
    assert served.remaining_seconds == 60
    assert store.writes == 1


def test_bootstrap_failure_serves_empty_board(clock):
    provider = StubQuoteProvider([QuoteFetchResult.unavailable("timeout")])
    controller, store = build_controller(clock, provider)

    served = controller.serve(refresh_requested=True)

    assert served.decision is RefreshDecision.BOOTSTRAP
    assert served.provider_called
    assert not served.refreshed
    assert served.provider_error == "timeout"
    assert served.quotes == ()
    assert served.rates == {"BRL": 1.0}
    assert served.can_refresh is True
    assert served.remaining_seconds == 0
    assert store.writes == 0


def test_cooldown_blocks_refresh_even_when_requested(clock):
    provider = StubQuoteProvider()
    controller, _ = build_controller(clock, provider, make_quotes(ALL_BIDS))
    clock.advance(30)

    served = controller.serve(refresh_requested=True)

    assert served.decision is RefreshDecision.COOLDOWN_ACTIVE
    assert provider.calls == []
    assert served.can_refresh is False
    assert served.remaining_seconds == 30
    assert len(served.quotes) == 8


def test_remaining_seconds_rounds_up(clock):
    controller, _ = build_controller(clock, StubQuoteProvider(), make_quotes(ALL_BIDS))
    clock.advance(59.2)

    assert controller.serve().remaining_seconds == 1


def test_refresh_allowed_but_not_requested_serves_cache(clock):
    provider = StubQuoteProvider()
    controller, _ = build_controller(clock, provider, make_quotes(ALL_BIDS))
    clock.advance(75)

    served = controller.serve()

    assert served.decision is RefreshDecision.REFRESH_ALLOWED
    assert provider.calls == []
    assert served.can_refresh is True
    assert served.remaining_seconds == 0
    assert not served.refreshed


def test_requested_refresh_after_cooldown_updates_cache(clock):
    provider = StubQuoteProvider([fresh_result({**ALL_BIDS, "USD": 5.50})])
    controller, _ = build_controller(clock, provider, make_quotes(ALL_BIDS))
    clock.advance(60)

    served = controller.serve(refresh_requested=True)

    assert served.decision is RefreshDecision.REFRESH_ALLOWED
    assert served.refreshed
    assert served.rates["USD"] == pytest.approx(5.50)
    assert served.last_cached_at == DEFAULT_NOW + timedelta(seconds=60)
    assert served.can_refresh is False
    assert served.remaining_seconds == 60


def test_failed_refresh_keeps_stale_cache(clock):
    provider = StubQuoteProvider([QuoteFetchResult.unavailable("HTTP 500")])
    cached = make_quotes(ALL_BIDS)
    controller, store = build_controller(clock, provider, cached)
    clock.advance(120)

    served = controller.serve(refresh_requested=True)

    assert served.provider_called
    assert not served.refreshed
    assert served.provider_error == "HTTP 500"
    assert list(served.quotes) == store.get_all()
    assert served.last_cached_at == DEFAULT_NOW
    assert served.can_refresh is True
    assert store.writes == 0


def test_partial_refresh_keeps_older_rows(clock):
    provider = StubQuoteProvider([fresh_result({"USD": 5.55})])
    controller, _ = build_controller(clock, provider, make_quotes(ALL_BIDS))
    clock.advance(90)

    served = controller.serve(refresh_requested=True)

    quotes = {quote.currency: quote for quote in served.quotes}
    assert len(quotes) == 8
    assert quotes["USD"].cached_at == DEFAULT_NOW + timedelta(seconds=90)
    assert quotes["EUR"].cached_at == DEFAULT_NOW
    assert served.last_cached_at == DEFAULT_NOW + timedelta(seconds=90)
    assert served.can_refresh is False


def test_partial_store_is_served_with_missing_rates_absent(clock):
    controller, _ = build_controller(
        clock, StubQuoteProvider(), [make_quote("USD", 5.43, cached_at=DEFAULT_NOW)]
    )

    served = controller.serve()

    assert served.decision is RefreshDecision.COOLDOWN_ACTIVE
    assert set(served.rates) == {"BRL", "USD"}


def test_empty_successful_fetch_is_not_a_refresh(clock):
    provider = StubQuoteProvider([QuoteFetchResult()])
    controller, store = build_controller(clock, provider)

    served = controller.serve()

    assert served.provider_called
    assert not served.refreshed
    assert served.provider_error is None
    assert store.writes == 0


def test_concurrent_requests_share_a_single_fetch(clock):
    provider = StubQuoteProvider([fresh_result(), fresh_result()], delay=0.05)
    controller, _ = build_controller(clock, provider)
    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(controller.serve(refresh_requested=True))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(provider.calls) == 1
    assert provider.max_in_flight == 1
    assert sum(1 for served in results if served.refreshed) == 1
    assert all(len(served.quotes) == 8 for served in results)


def test_concurrent_requests_share_a_single_fetch_with_sqlite_store(quote_store, clock):
    provider = StubQuoteProvider([fresh_result(), fresh_result()], delay=0.05)
    store = QuoteStore(SessionLocal, clock=clock)
    controller = RefreshController(store, provider, clock=clock)
    barrier = threading.Barrier(6)
    results = []
    errors = []

    def worker():
        try:
            barrier.wait()
            results.append(controller.serve(refresh_requested=True))
        except Exception as exc:
            errors.append(exc)
        finally:
            SessionLocal.remove()

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(provider.calls) == 1
    assert provider.max_in_flight == 1
    decisions = sorted(served.decision.value for served in results)
    assert decisions == ["bootstrap"] + ["cooldown_active"] * 5
    assert all(len(served.quotes) == 8 for served in results)
    assert len(store.get_all()) == 8


def test_storage_errors_propagate(clock):
    store = MagicMock()
    store.get_all.side_effect = StorageError("Unable to read cached quotes.")
    provider = StubQuoteProvider()
    controller = RefreshController(store, provider, clock=clock)

    with pytest.raises(StorageError):
        controller.serve(refresh_requested=True)

    assert provider.calls == []


def test_inspect_never_calls_the_provider(clock):
    provider = StubQuoteProvider()
    controller, _ = build_controller(clock, provider)

    quotes, state = controller.inspect()

    assert quotes == []
    assert state.is_empty
    assert state.can_refresh
    assert provider.calls == []


def test_future_cached_at_counts_as_just_written():
    state = evaluate_refresh_state(
        [make_quote(cached_at=DEFAULT_NOW + timedelta(seconds=10))],
        now=DEFAULT_NOW,
        cooldown_seconds=60,
    )

    assert state.elapsed_seconds == 0
    assert state.remaining_seconds == 60


def test_zero_cooldown_always_allows_refresh():
    state = evaluate_refresh_state([make_quote()], now=DEFAULT_NOW, cooldown_seconds=0)

    assert state.can_refresh
    assert state.remaining_seconds == 0


def test_negative_cooldown_is_rejected(clock):
    with pytest.raises(ValueError):
        RefreshController(InMemoryQuoteStore(clock), StubQuoteProvider(), cooldown_seconds=-1)


def test_serve_logs_the_decision(clock, monkeypatch):
    provider = StubQuoteProvider([fresh_result()])
    controller, _ = build_controller(clock, provider)
    mock_info = MagicMock()
    monkeypatch.setattr(controller_module.logger, "info", mock_info)

    controller.serve(refresh_requested=True)

    extra = mock_info.call_args.kwargs["extra"]
    assert extra["event"] == "quotes.refresh"
    assert extra["decision"] == "bootstrap"
    assert extra["refreshed"] is True
    assert extra["cached_count"] == 8


def test_app_builds_controller_from_config(app):
    controller = app.extensions[controller_module.CONTROLLER_EXT_KEY]

    assert isinstance(controller, RefreshController)
    assert controller.cooldown_seconds == 60
