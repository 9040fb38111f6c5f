"""
Scraper plugin contract.

ScraperPlugin: typing.Protocol that every portal scraper satisfies structurally.
ScraperMetadata / ScrapeResult: the declared capability and the uniform response
envelope every plugin produces.
wrap_result(): the single builder all plugin return paths go through.
resolve_selector(): ordered fallback over candidate locators, shared by every
plugin so markup drift is absorbed without per-portal matching logic.
submit_login_form(): the username/password/submit sequence shared by the
authenticated portals.
"""
import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from portalscrape.browser.session import BrowserProvider
from portalscrape.errors import PortalError, SelectorSyntaxError
from portalscrape.settings import Settings
from portalscrape.store import KeyValueStore

logger = logging.getLogger(__name__)

PORTAL_ID_PATTERN = r"^[a-z0-9-]{1,64}$"


class ScraperCategory(str, Enum):
    UTILITY = "utility"
    COURT = "court"
    MORTGAGE = "mortgage"
    TAX = "tax"
    HOA = "hoa"
    GOVERNANCE = "governance"
    GENERIC = "generic"


class ScraperMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(pattern=PORTAL_ID_PATTERN)
    name: str
    category: ScraperCategory
    version: str
    requires_auth: bool
    credential_keys: tuple[str, ...] | None = None


class CamelModel(BaseModel):
    """Plugin input/output model exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Required text input: surrounding whitespace is stripped before the emptiness check
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def describe_input_error(exc: ValidationError) -> str:
    """One-line message naming the first input field that failed validation."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or "input"
    if error["type"] in ("missing", "string_too_short"):
        return f"{field} is required"
    return f"{field}: {error['msg']}"


class ScrapeResult(BaseModel):
    """Response envelope: ``{success, data?, error?, method, portal, scrapedAt}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    data: Any = None
    error: str | None = None
    method: Literal["scrape"] = "scrape"
    portal: str
    scraped_at: datetime

    @model_validator(mode="after")
    def _data_or_error(self) -> "ScrapeResult":
        if self.data is not None and self.error is not None:
            raise ValueError("a result carries either data or an error, not both")
        return self

    def to_response(self) -> dict[str, Any]:
        """JSON-ready body with absent ``data`` / ``error`` keys omitted."""
        body = self.model_dump(mode="json", by_alias=True)
        for key in ("data", "error"):
            if body[key] is None:
                del body[key]
        return body


def wrap_result(
    portal: str,
    success: bool,
    data: Any = None,
    error: str | None = None,
) -> ScrapeResult:
    return ScrapeResult(
        success=success,
        data=data,
        error=error,
        portal=portal,
        scraped_at=datetime.now(timezone.utc),
    )


@dataclass(frozen=True)
class ScrapeContext:
    """Collaborators handed to a plugin for one request."""

    browser: BrowserProvider
    store: KeyValueStore
    settings: Settings


class ScraperPlugin(Protocol):
    metadata: ScraperMetadata

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        """Run the portal flow. Expected failures come back as success=False."""
        ...


class SelectorPage(Protocol):
    async def query(self, selector: str) -> Any | None:
        ...


async def resolve_selector(page: SelectorPage, selectors: Iterable[str]) -> str | None:
    """
    Return the first selector in ``selectors`` that matches an element, or None.

    A candidate that is not valid in the page's selector dialect is skipped.
    BrowserSessionError and any other failure propagate unchanged.
    """
    for selector in selectors:
        try:
            element = await page.query(selector)
        except SelectorSyntaxError as exc:
            logger.debug("Skipping unparseable selector %r: %s", selector, exc)
            continue
        if element is not None:
            return selector
    return None


async def read_credentials(store: KeyValueStore, keys: Sequence[str]) -> list[str | None]:
    """Fetch each credential key in order. Missing keys come back as None.

    Store reads are blocking database calls, so they run in a worker thread.
    """
    return await asyncio.to_thread(lambda: [store.get(key) for key in keys])


async def submit_login_form(
    page: Any,
    username: str,
    password: str,
    *,
    username_selectors: Iterable[str],
    password_selectors: Iterable[str],
    submit_selectors: Iterable[str],
    settle_delay: float,
) -> None:
    """Fill and submit a username/password form located through resolve_selector().

    Raises PortalError naming the first form element that could not be found.
    Deciding whether the login was accepted is left to the caller.
    """
    user_sel = await resolve_selector(page, username_selectors)
    if user_sel is None:
        raise PortalError("Could not find username input")
    await page.fill(user_sel, username)

    pass_sel = await resolve_selector(page, password_selectors)
    if pass_sel is None:
        raise PortalError("Could not find password input")
    await page.fill(pass_sel, password)

    submit_sel = await resolve_selector(page, submit_selectors)
    if submit_sel is None:
        raise PortalError("Could not find submit button")
    await page.click(submit_sel)

    await page.wait_for_settle(timeout_ms=20_000)
    await page.pause(settle_delay)
