"""
Shared fixtures for portalscrape tests.

- The service database is pointed at in-memory SQLite before any portalscrape import.
- kv_store: SqlKeyValueStore over a fresh in-memory SQLite engine (StaticPool).
- make_browser / make_context: factories over the fakes in tests/fakes.py.
"""
import os

os.environ.setdefault("PORTALSCRAPE_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fakes import FakeBrowser, FakePage
from portalscrape.db.session import init_db
from portalscrape.scrapers.base import ScrapeContext
from portalscrape.settings import Settings
from portalscrape.store import SqlKeyValueStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def kv_store():
    """SqlKeyValueStore backed by a fresh in-memory SQLite database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield SqlKeyValueStore(sessionmaker(bind=engine, autocommit=False, autoflush=False))
    engine.dispose()


@pytest.fixture()
def make_browser():
    """Factory: make_browser(**FakePage kwargs) -> FakeBrowser."""
    def _make(**page_kwargs):
        return FakeBrowser(FakePage(**page_kwargs))
    return _make


@pytest.fixture()
def make_context(kv_store):
    """Factory: make_context(browser) -> ScrapeContext over the test store."""
    def _make(browser):
        return ScrapeContext(browser=browser, store=kv_store, settings=Settings())
    return _make
