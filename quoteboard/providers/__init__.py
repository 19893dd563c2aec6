"""Provider interfaces and data structures for quote sources."""

from .base import BaseQuoteProvider, ProviderError
from .schemas import Quote, QuoteFetchResult
from .http_client import HTTPClient, HTTPClientConfig, HTTPClientError
from .awesomeapi_client import AwesomeAPIClient, AwesomeAPIClientConfig, AwesomeAPIError
from .awesomeapi_provider import AwesomeAPIProvider
from .mock import MockQuoteProvider

__all__ = [
    "BaseQuoteProvider",
    "ProviderError",
    "Quote",
    "QuoteFetchResult",
    "HTTPClient",
    "HTTPClientConfig",
    "HTTPClientError",
    "AwesomeAPIClient",
    "AwesomeAPIClientConfig",
    "AwesomeAPIError",
    "AwesomeAPIProvider",
    "MockQuoteProvider",
]
