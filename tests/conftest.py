"""Shared pytest fixtures."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from quoteboard import create_app  # noqa: E402
from quoteboard.database import SessionLocal, dispose_engine  # noqa: E402
from quoteboard.models import CachedQuote  # noqa: E402
from quoteboard.services.quote_store import QuoteStore  # noqa: E402
from quoteboard.services.refresh_controller import CONTROLLER_EXT_KEY  # noqa: E402


@pytest.fixture(scope="session")
def app(tmp_path_factory: pytest.TempPathFactory) -> Iterator:
    """Session-wide Flask application backed by a migrated temporary database."""

    db_path = tmp_path_factory.mktemp("db") / "test.db"
    database_url = f"sqlite:///{db_path}"

    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_cfg, "head")

    flask_app = create_app(
        "development",
        config_overrides={
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": database_url,
            "FX_QUOTE_PROVIDER": "mock",
        },
    )

    yield flask_app

    dispose_engine()
    command.downgrade(alembic_cfg, "base")


def _clear_quotes() -> None:
    session = SessionLocal()
    try:
        session.query(CachedQuote).delete()
        session.commit()
    finally:
        SessionLocal.remove()


@pytest.fixture()
def empty_cache(app) -> Iterator[None]:
    """Start and finish the test with an empty quotes table."""

    _clear_quotes()
    yield
    _clear_quotes()


@pytest.fixture()
def client(app, empty_cache):
    """Provide a Flask test client over an empty cache."""

    original = app.extensions.get(CONTROLLER_EXT_KEY)
    with app.test_client() as client:
        yield client
    app.extensions[CONTROLLER_EXT_KEY] = original


@pytest.fixture()
def quote_store(app, empty_cache) -> QuoteStore:
    """A store bound to the shared scoped session."""

    return QuoteStore(SessionLocal)


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    """Return the path to bundled JSON fixtures."""

    return ROOT_DIR / "tests" / "fixtures"


@pytest.fixture()
def load_json_fixture(fixtures_dir: Path) -> Callable[[str], dict]:
    """Load a JSON fixture by filename."""

    def _loader(filename: str) -> dict:
        path = fixtures_dir / filename
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    return _loader
