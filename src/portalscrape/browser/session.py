"""
Per-request headless browser sessions.

PlaywrightBrowser.session() launches Chromium, opens exactly one page and yields
a PageSession. The page, browser and Playwright driver are closed on every exit
path; sessions are never pooled or shared between requests.

PageSession is the only place Playwright exceptions are seen. They are translated
into the portalscrape error hierarchy so plugins and the selector resolver can
discriminate by type:

  - playwright TimeoutError                -> StepTimeoutError
  - selector parse / dialect failures      -> SelectorSyntaxError
  - anything else (closed target, crash)   -> BrowserSessionError
"""
import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from portalscrape.errors import BrowserSessionError, SelectorSyntaxError, StepTimeoutError
from portalscrape.settings import Settings

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 800}

# Fragments Playwright uses when a selector cannot be parsed by its engine
_SELECTOR_SYNTAX_MARKERS = (
    "while parsing selector",
    "is not a valid selector",
    "Unexpected token",
    "Unknown engine",
)


def translate_error(exc: PlaywrightError, action: str) -> Exception:
    """Map a Playwright exception onto the portalscrape error hierarchy."""
    message = str(exc)
    if isinstance(exc, PlaywrightTimeoutError):
        return StepTimeoutError(f"Timed out during {action}")
    if any(marker in message for marker in _SELECTOR_SYNTAX_MARKERS):
        return SelectorSyntaxError(message)
    return BrowserSessionError(f"Browser session failed during {action}: {message}")


class PageSession:
    """Thin adapter over a Playwright Page exposing the primitives plugins need."""

    def __init__(self, page: Page, default_timeout_ms: int = 30_000):
        self._page = page
        self.default_timeout_ms = default_timeout_ms

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, *, timeout_ms: int | None = None) -> None:
        try:
            await self._page.goto(
                url,
                wait_until="networkidle",
                timeout=timeout_ms or self.default_timeout_ms,
            )
        except PlaywrightError as exc:
            raise translate_error(exc, f"navigation to {url}") from exc

    async def query(self, selector: str) -> Any | None:
        """Return the first element matching ``selector`` or None."""
        try:
            return await self._page.query_selector(selector)
        except PlaywrightError as exc:
            raise translate_error(exc, f"lookup of {selector!r}") from exc

    async def fill(self, selector: str, value: str) -> None:
        try:
            await self._page.fill(selector, value, timeout=self.default_timeout_ms)
        except PlaywrightError as exc:
            raise translate_error(exc, f"typing into {selector!r}") from exc

    async def click(self, selector: str) -> None:
        try:
            await self._page.click(selector, timeout=self.default_timeout_ms)
        except PlaywrightError as exc:
            raise translate_error(exc, f"click on {selector!r}") from exc

    async def wait_for_settle(self, *, timeout_ms: int = 20_000) -> None:
        """Wait for network idle after a submit. A slow page is not an error here."""
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Page %s did not settle within %d ms", self.url, timeout_ms)
        except PlaywrightError as exc:
            raise translate_error(exc, "waiting for page to settle") from exc

    async def body_text(self) -> str:
        try:
            return await self._page.evaluate("() => document.body ? document.body.innerText : ''")
        except PlaywrightError as exc:
            raise translate_error(exc, "reading page text") from exc

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as exc:
            raise translate_error(exc, "reading page HTML") from exc

    async def pause(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)


class BrowserProvider(Protocol):
    def session(self) -> contextlib.AbstractAsyncContextManager[PageSession]:
        ...


class PlaywrightBrowser:
    """Launches one headless Chromium per session() call."""

    def __init__(self, settings: Settings):
        self.headless = settings.browser_headless
        self.timeout_ms = settings.navigation_timeout_ms

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[PageSession]:
        try:
            playwright = await async_playwright().start()
        except PlaywrightError as exc:
            raise BrowserSessionError(f"Could not start browser driver: {exc}") from exc

        browser = None
        page = None
        try:
            try:
                browser = await playwright.chromium.launch(headless=self.headless)
                context = await browser.new_context(viewport=VIEWPORT)
                page = await context.new_page()
            except PlaywrightError as exc:
                raise BrowserSessionError(f"Could not launch browser: {exc}") from exc
            yield PageSession(page, default_timeout_ms=self.timeout_ms)
        finally:
            if page is not None:
                with contextlib.suppress(PlaywrightError):
                    await page.close()
            if browser is not None:
                with contextlib.suppress(PlaywrightError):
                    await browser.close()
            await playwright.stop()
