"""
Shared fixtures for API integration tests.

The store and browser dependencies are overridden via app.dependency_overrides:
the store is the in-memory SQLite kv_store fixture, the browser is a FakeBrowser.
"""
import pytest
from fastapi.testclient import TestClient

from fakes import FakeBrowser, FakePage
from portalscrape.api.deps import SERVICE_TOKEN_KEY, get_browser, get_store
from portalscrape.api.main import app

SERVICE_TOKEN = "test-service-token-0123456789"


@pytest.fixture()
def fake_browser():
    return FakeBrowser(FakePage())


@pytest.fixture()
def client(kv_store, fake_browser):
    """Yield a TestClient wired to the test store and fake browser."""
    app.dependency_overrides[get_store] = lambda: kv_store
    app.dependency_overrides[get_browser] = lambda: fake_browser

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(kv_store):
    """Provision the service token and return matching Authorization headers."""
    kv_store.put(SERVICE_TOKEN_KEY, SERVICE_TOKEN)
    return {"Authorization": f"Bearer {SERVICE_TOKEN}"}


@pytest.fixture()
def service_token():
    return SERVICE_TOKEN
