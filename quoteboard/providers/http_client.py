"""Shared HTTP client wrapper with timeouts, retries and TLS settings."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests
from requests import Response, Session
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fx-quoteboard/1.0 (+python-requests)"


class HTTPClientError(RuntimeError):
    """Raised when the HTTP client cannot satisfy a request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class HTTPClientConfig:
    """Configuration for the shared HTTP client."""

    base_url: str
    timeout: float = 5.0
    max_retries: int = 1
    backoff_seconds: float = 0.5
    backoff_jitter: float = 0.2
    verify_tls: bool = True
    user_agent: str = DEFAULT_USER_AGENT


class HTTPClient:
    """Small HTTP client that applies timeout and retry/backoff policies."""

    def __init__(
        self,
        config: HTTPClientConfig,
        session: Optional[Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        if not config.verify_tls:
            logger.warning(
                "TLS certificate verification is disabled for %s", config.base_url
            )

    @property
    def config(self) -> HTTPClientConfig:
        return self._config

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Transport errors, 429 and 5xx answers are retried up to
        ``max_retries`` attempts in total; other failures are raised at once.

        Raises:
            HTTPClientError: When the request could not be completed.
        """

        url = self._build_url(path)
        attempts = max(self._config.max_retries, 1)

        for attempt in range(1, attempts + 1):
            try:
                response = self._session.get(
                    url,
                    params=params,
                    timeout=self._config.timeout,
                    verify=self._config.verify_tls,
                    headers={"User-Agent": self._config.user_agent},
                )
                return self._handle_response(response)
            except (RequestException, HTTPClientError) as exc:
                if attempt >= attempts or not _is_retryable(exc):
                    raise HTTPClientError(
                        f"Failed to fetch {url}: {exc}",
                        status_code=getattr(exc, "status_code", None),
                    ) from exc
                delay = self._compute_backoff(attempt)
                logger.warning(
                    "GET %s failed (attempt %s/%s): %s; retrying in %.2fs",
                    url,
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
                time.sleep(delay)

    def _compute_backoff(self, attempt: int) -> float:
        base = self._config.backoff_seconds * (2 ** (attempt - 1))
        jitter = random.uniform(-self._config.backoff_jitter, self._config.backoff_jitter)
        return max(base + jitter, 0.0)

    def _build_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        suffix = path.lstrip("/")
        return f"{base}/{suffix}" if suffix else base

    @staticmethod
    def _handle_response(response: Response) -> Any:
        status = response.status_code
        if status >= 500:
            raise HTTPClientError(f"Server error {status}", status_code=status)
        if status >= 400:
            raise HTTPClientError(f"Client error {status}: {response.text}", status_code=status)

        try:
            return response.json()
        except ValueError as exc:
            raise HTTPClientError("Invalid JSON response", status_code=status) from exc


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, HTTPClientError):
        return exc.status_code is not None and (exc.status_code == 429 or exc.status_code >= 500)
    return True
