"""Abstract interface for quote providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .schemas import QuoteFetchResult


class ProviderError(Exception):
    """Raised when a provider cannot be configured or resolved."""


class BaseQuoteProvider(ABC):
    """Defines the interface all quote providers must implement."""

    name: str

    @abstractmethod
    def fetch_latest(self, codes: Iterable[str]) -> QuoteFetchResult:
        """Fetch current quotes for ``codes`` against the reference currency.

        Implementations never raise for network or payload problems; they
        return ``QuoteFetchResult.unavailable`` instead.
        """
