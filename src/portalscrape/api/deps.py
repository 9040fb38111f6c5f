"""
FastAPI dependencies: collaborators for the protected surface and the admission gate.

Every collaborator (store, browser provider, registry) comes through a dependency so
tests can swap it via ``app.dependency_overrides``.
"""
import hmac
import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portalscrape.browser.session import BrowserProvider, PlaywrightBrowser
from portalscrape.db.session import SessionLocal
from portalscrape.dispatch import Dispatcher
from portalscrape.errors import StoreUnavailableError
from portalscrape.gaps import GapTracker
from portalscrape.scrapers.base import ScrapeContext
from portalscrape.scrapers.registry import ScraperRegistry, get_registry
from portalscrape.settings import Settings, get_settings
from portalscrape.store import KeyValueStore, SqlKeyValueStore

logger = logging.getLogger(__name__)

SERVICE_TOKEN_KEY = "scrape:service_token"

# Scheme match is case-insensitive; None when the header is absent, non-Bearer or empty
bearer = HTTPBearer(auto_error=False)


def get_store() -> KeyValueStore:
    return SqlKeyValueStore(SessionLocal)


def get_browser(settings: Settings = Depends(get_settings)) -> BrowserProvider:
    return PlaywrightBrowser(settings)


def get_gap_tracker(store: KeyValueStore = Depends(get_store)) -> GapTracker:
    return GapTracker(store)


def get_dispatcher(
    registry: ScraperRegistry = Depends(get_registry),
    gap_tracker: GapTracker = Depends(get_gap_tracker),
) -> Dispatcher:
    return Dispatcher(registry, gap_tracker)


def get_scrape_context(
    browser: BrowserProvider = Depends(get_browser),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ScrapeContext:
    return ScrapeContext(browser=browser, store=store, settings=settings)


def require_service_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    store: KeyValueStore = Depends(get_store),
) -> None:
    """Admit the request only if it carries the service token from the store.

    401: header missing, not a Bearer credential, or empty token
    403: token does not match
    503: store unreachable, or no token provisioned (never fails open)
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    presented = credentials.credentials

    try:
        expected = store.get(SERVICE_TOKEN_KEY)
    except StoreUnavailableError as exc:
        logger.error("Admission gate could not read service token: %s", exc)
        raise HTTPException(status_code=503, detail="Authentication backend unavailable")
    if not expected:
        logger.error("No service token provisioned under %s", SERVICE_TOKEN_KEY)
        raise HTTPException(status_code=503, detail="Authentication not configured")

    presented_bytes = presented.encode()
    expected_bytes = expected.encode()
    if len(presented_bytes) != len(expected_bytes) or not hmac.compare_digest(presented_bytes, expected_bytes):
        raise HTTPException(status_code=403, detail="Invalid token")
