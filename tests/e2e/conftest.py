"""Fixtures powering end-to-end tests."""

from __future__ import annotations

import pytest

from quoteboard.database import SessionLocal
from quoteboard.providers.awesomeapi_client import AwesomeAPIClient, AwesomeAPIClientConfig
from quoteboard.providers.awesomeapi_provider import AwesomeAPIProvider
from quoteboard.services.quote_store import QuoteStore
from quoteboard.services.refresh_controller import CONTROLLER_EXT_KEY, RefreshController
from tests.factories import FrozenClock

BASE_URL = "https://quotes.test/json/last"


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def live_controller(app, client, clock):
    """Attach a controller wired to the real store and an HTTP-backed provider."""

    provider = AwesomeAPIProvider(
        AwesomeAPIClient(AwesomeAPIClientConfig(base_url=BASE_URL, timeout=1))
    )
    controller = RefreshController(QuoteStore(SessionLocal, clock=clock), provider, clock=clock)
    app.extensions[CONTROLLER_EXT_KEY] = controller
    return controller
