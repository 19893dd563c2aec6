"""Decide per request whether to serve cached quotes or refresh them."""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from time import perf_counter

from quoteboard.logging import provider_log_extra, refresh_log_extra
from quoteboard.providers.base import BaseQuoteProvider
from quoteboard.providers.schemas import Quote, QuoteFetchResult
from quoteboard.utils.datetime import ensure_utc, utc_now

from .currency_registry import CurrencyRegistry, registry
from .quote_store import QuoteStore
from .rate_table import RateTable, build_rate_table

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60
CONTROLLER_EXT_KEY = "quote_refresh_controller"


class RefreshDecision(str, Enum):
    """Which branch of the refresh state machine a request took."""

    BOOTSTRAP = "bootstrap"
    COOLDOWN_ACTIVE = "cooldown_active"
    REFRESH_ALLOWED = "refresh_allowed"


@dataclass(frozen=True)
class RefreshState:
    """Freshness of the cache at one instant. Never persisted."""

    most_recent_cached_at: datetime | None
    elapsed_seconds: float | None
    cooldown_seconds: int

    @property
    def is_empty(self) -> bool:
        return self.most_recent_cached_at is None

    @property
    def can_refresh(self) -> bool:
        if self.elapsed_seconds is None:
            return True
        return self.elapsed_seconds >= self.cooldown_seconds

    @property
    def remaining_seconds(self) -> int:
        if self.can_refresh or self.elapsed_seconds is None:
            return 0
        return math.ceil(self.cooldown_seconds - self.elapsed_seconds)


def evaluate_refresh_state(
    quotes: Sequence[Quote],
    *,
    now: datetime,
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
) -> RefreshState:
    """Compute the cooldown position from the newest ``cached_at``.

    An empty cache is infinitely stale. A ``cached_at`` in the future (clock
    skew) counts as just written.
    """

    if not quotes:
        return RefreshState(None, None, cooldown_seconds)
    most_recent = max(quote.cached_at for quote in quotes)
    elapsed = (ensure_utc(now) - most_recent).total_seconds()
    return RefreshState(most_recent, max(elapsed, 0.0), cooldown_seconds)


@dataclass(frozen=True)
class ServedQuotes:
    """Everything the presentation layer needs for one request."""

    quotes: tuple[Quote, ...]
    rates: RateTable
    reference_currency: str
    decision: RefreshDecision
    can_refresh: bool
    remaining_seconds: int
    refreshed: bool
    provider_called: bool
    provider_error: str | None
    last_cached_at: datetime | None


class RefreshController:
    """Coordinate the quote store and the provider for each request.

    The read-decide-write sequence runs under a lock so that concurrent
    requests never have more than one provider fetch in flight; a request
    queued behind a successful refresh sees the new cache and lands in the
    cooldown branch.
    """

    def __init__(
        self,
        store: QuoteStore,
        provider: BaseQuoteProvider,
        *,
        currency_registry: CurrencyRegistry = registry,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must not be negative")
        self._store = store
        self._provider = provider
        self._registry = currency_registry
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def cooldown_seconds(self) -> int:
        return self._cooldown_seconds

    def serve(self, refresh_requested: bool = False) -> ServedQuotes:
        """Return the quotes to show for one request, refreshing if due.

        Raises:
            StorageError: If the quote store cannot be read or written.
        """

        provider_called = False
        refreshed = False
        fetch: QuoteFetchResult | None = None

        with self._lock:
            quotes = self._store.get_all()
            state = self.evaluate(quotes)

            if state.is_empty:
                decision = RefreshDecision.BOOTSTRAP
            elif not state.can_refresh:
                decision = RefreshDecision.COOLDOWN_ACTIVE
            else:
                decision = RefreshDecision.REFRESH_ALLOWED

            if decision is RefreshDecision.BOOTSTRAP or (
                decision is RefreshDecision.REFRESH_ALLOWED and refresh_requested
            ):
                provider_called = True
                fetch = self._fetch()
                if fetch.quotes:
                    self._store.upsert_many(fetch.quotes)
                    quotes = self._store.get_all()
                    refreshed = True
                    state = self.evaluate(quotes)

        served = ServedQuotes(
            quotes=tuple(quotes),
            rates=build_rate_table(quotes, reference=self._registry.reference),
            reference_currency=self._registry.reference,
            decision=decision,
            can_refresh=state.can_refresh,
            remaining_seconds=state.remaining_seconds,
            refreshed=refreshed,
            provider_called=provider_called,
            provider_error=fetch.error if fetch is not None else None,
            last_cached_at=state.most_recent_cached_at,
        )
        logger.info(
            "Quotes served (%s)",
            decision.value,
            extra=refresh_log_extra(
                decision=decision.value,
                refresh_requested=refresh_requested,
                provider_called=provider_called,
                refreshed=refreshed,
                remaining_seconds=served.remaining_seconds,
                cached_count=len(served.quotes),
            ),
        )
        return served

    def inspect(self) -> tuple[list[Quote], RefreshState]:
        """Read the cache and its freshness without contacting the provider."""

        quotes = self._store.get_all()
        return quotes, self.evaluate(quotes)

    def evaluate(self, quotes: Sequence[Quote]) -> RefreshState:
        return evaluate_refresh_state(
            quotes, now=self._clock(), cooldown_seconds=self._cooldown_seconds
        )

    def _fetch(self) -> QuoteFetchResult:
        provider_name = getattr(self._provider, "name", self._provider.__class__.__name__)
        start = perf_counter()
        result = self._provider.fetch_latest(self._registry.tracked)
        if not result.available:
            logger.warning(
                "Quote refresh skipped; keeping cached quotes",
                extra=provider_log_extra(
                    provider=provider_name,
                    reference=self._registry.reference,
                    event="provider.unavailable",
                    status="error",
                    duration_ms=(perf_counter() - start) * 1000,
                    error=result.error,
                ),
            )
        return result


def init_refresh_controller(app) -> RefreshController:
    """Create the process-wide controller and store it on the Flask app."""

    provider = app.extensions.get("quote_provider")
    if provider is None:
        from quoteboard.providers.registry import get_provider  # Local import to avoid circular

        with app.app_context():
            provider = get_provider(app.config.get("FX_QUOTE_PROVIDER"))

    controller = RefreshController(
        store=QuoteStore(),
        provider=provider,
        cooldown_seconds=int(
            app.config.get("REFRESH_COOLDOWN_SECONDS", DEFAULT_COOLDOWN_SECONDS)
        ),
    )
    app.extensions[CONTROLLER_EXT_KEY] = controller
    return controller
