"""AwesomeAPI quote provider implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from time import perf_counter
from typing import Any

from quoteboard.logging import provider_log_extra
from quoteboard.providers.base import BaseQuoteProvider
from quoteboard.providers.schemas import Quote, QuoteFetchResult
from quoteboard.utils.datetime import format_provider_timestamp, utc_now

from ..services.currency_registry import CurrencyRegistry, registry
from .awesomeapi_client import (
    DEFAULT_BASE_URL,
    AwesomeAPIClient,
    AwesomeAPIClientConfig,
    AwesomeAPIError,
)

logger = logging.getLogger(__name__)


class AwesomeAPIProvider(BaseQuoteProvider):
    """Provider that fetches batched quotes from AwesomeAPI."""

    name = "awesomeapi"

    def __init__(
        self,
        client: AwesomeAPIClient,
        currency_registry: CurrencyRegistry = registry,
    ) -> None:
        self._client = client
        self._registry = currency_registry

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AwesomeAPIProvider:
        base_url_value = config.get("QUOTES_API_BASE_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = DEFAULT_BASE_URL
        else:
            base_url = base_url_value
        client_config = AwesomeAPIClientConfig(
            base_url=base_url,
            timeout=float(config.get("REQUEST_TIMEOUT_SECONDS", 5)),
            api_key=str(config.get("QUOTES_API_KEY") or ""),
            max_retries=int(config.get("QUOTES_API_MAX_RETRIES", 1)),
            backoff_seconds=float(config.get("QUOTES_API_BACKOFF_SECONDS", 0.5)),
            verify_tls=_as_bool(config.get("QUOTES_API_VERIFY_TLS", True)),
        )
        return cls(AwesomeAPIClient(client_config))

    def fetch_latest(self, codes: Iterable[str]) -> QuoteFetchResult:
        reference = self._registry.reference
        tracked = self._registry.filter_tracked(codes)
        if not tracked:
            return QuoteFetchResult()

        pairs = [f"{code}-{reference}" for code in tracked]
        start = perf_counter()
        try:
            payload = self._client.latest(pairs)
            result = self._parse_payload(payload, fetched_at=utc_now())
        except AwesomeAPIError as exc:
            logger.warning(
                "Quote provider unavailable: %s",
                exc,
                extra=provider_log_extra(
                    provider=self.name,
                    reference=reference,
                    event="provider.fetch",
                    status="error",
                    duration_ms=(perf_counter() - start) * 1000,
                    error=str(exc),
                ),
            )
            return QuoteFetchResult.unavailable(str(exc))

        logger.info(
            "Quote provider fetch succeeded",
            extra=provider_log_extra(
                provider=self.name,
                reference=reference,
                event="provider.fetch",
                status="success",
                duration_ms=(perf_counter() - start) * 1000,
                quote_count=len(result.quotes),
            ),
        )
        return result

    def _parse_payload(self, payload: Mapping[str, Any], *, fetched_at: datetime) -> QuoteFetchResult:
        if not all(isinstance(entry, Mapping) for entry in payload.values()):
            raise AwesomeAPIError("AwesomeAPI payload is not a mapping of pairs to quote objects")

        quotes: dict[str, Quote] = {}
        for key, entry in payload.items():
            code = self._code_from_key(str(key))
            if code is None:
                logger.debug("Skipping unrecognized pair '%s' in provider payload", key)
                continue
            try:
                quotes[code] = Quote(
                    currency=code,
                    bid=entry["bid"],
                    ask=entry["ask"],
                    pct_change=entry["pctChange"],
                    provider_timestamp=entry.get("create_date")
                    or format_provider_timestamp(fetched_at),
                    cached_at=fetched_at,
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed quote entry '%s': %s", key, exc)

        return QuoteFetchResult(quotes=tuple(quotes.values()))

    def _code_from_key(self, key: str) -> str | None:
        """Map a ``<CODE><REFERENCE>`` key back to a tracked code."""

        reference = self._registry.reference
        normalized = key.strip().upper()
        if not normalized.endswith(reference):
            return None
        code = normalized[: -len(reference)]
        return code if self._registry.is_tracked(code) else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
