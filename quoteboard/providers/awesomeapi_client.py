from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from quoteboard.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

DEFAULT_BASE_URL = "https://economia.awesomeapi.com.br/json/last"


class AwesomeAPIError(RuntimeError):
    """Raised when AwesomeAPI cannot be reached or returns an error payload."""


@dataclass(frozen=True)
class AwesomeAPIClientConfig:
    """Configuration parameters for the AwesomeAPI client."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 5.0
    api_key: str = ""
    max_retries: int = 1
    backoff_seconds: float = 0.5
    verify_tls: bool = True


class AwesomeAPIClient:
    """HTTP client for AwesomeAPI's ``/json/last`` endpoint."""

    def __init__(self, config: AwesomeAPIClientConfig, client: Optional[HTTPClient] = None) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=config.max_retries,
                backoff_seconds=config.backoff_seconds,
                verify_tls=config.verify_tls,
            )
        )

    def latest(self, pairs: list[str]) -> Mapping[str, Any]:
        """Fetch the last quote for every ``<CODE>-<REFERENCE>`` pair in one call."""

        if not pairs:
            raise ValueError("At least one currency pair is required.")

        params = {"token": self._config.api_key} if self._config.api_key else None
        try:
            payload = self._client.get(",".join(pairs), params=params)
        except HTTPClientError as exc:
            raise AwesomeAPIError(f"AwesomeAPI request failed: {exc}") from exc

        if not isinstance(payload, Mapping):
            raise AwesomeAPIError(
                f"AwesomeAPI returned a {type(payload).__name__} body instead of an object"
            )
        if "status" in payload:
            message = payload.get("message") or payload.get("code") or payload["status"]
            raise AwesomeAPIError(f"AwesomeAPI error payload: {message}")

        return payload
