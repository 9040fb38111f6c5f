"""
Fakes for tests.

FakePage / FakeBrowser stand in for the Playwright-backed PageSession and
PlaywrightBrowser so no real browser is ever launched. SlowStore and
run_with_heartbeat() check that blocking store calls stay off the event loop.
"""
import asyncio
import time
from contextlib import asynccontextmanager

from portalscrape.errors import BrowserSessionError, SelectorSyntaxError


class FakePage:
    """Duck-typed PageSession.

    elements: selectors that resolve to an element
    invalid:  selectors that raise SelectorSyntaxError on lookup
    broken:   selectors whose lookup raises BrowserSessionError
    """

    def __init__(
        self,
        elements=(),
        invalid=(),
        broken=(),
        html="<html><body></body></html>",
        body="",
        url="https://portal.example/",
        url_after_click=None,
        html_after_click=None,
        goto_error=None,
    ):
        self.elements = set(elements)
        self.invalid = set(invalid)
        self.broken = set(broken)
        self.html = html
        self.body = body
        self.url = url
        self.url_after_click = url_after_click
        self.html_after_click = html_after_click
        self.goto_error = goto_error
        self.visited: list[str] = []
        self.queried: list[str] = []
        self.filled: dict[str, str] = {}
        self.clicked: list[str] = []

    async def goto(self, url, *, timeout_ms=None):
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def query(self, selector):
        self.queried.append(selector)
        if selector in self.broken:
            raise BrowserSessionError("Target page, context or browser has been closed")
        if selector in self.invalid:
            raise SelectorSyntaxError(f"'{selector}' is not a valid selector")
        return object() if selector in self.elements else None

    async def fill(self, selector, value):
        self.filled[selector] = value

    async def click(self, selector):
        self.clicked.append(selector)
        if self.url_after_click is not None:
            self.url = self.url_after_click
        if self.html_after_click is not None:
            self.html = self.html_after_click

    async def wait_for_settle(self, *, timeout_ms=20_000):
        return None

    async def pause(self, seconds):
        return None

    async def body_text(self):
        return self.body

    async def content(self):
        return self.html


class FakeBrowser:
    """Duck-typed BrowserProvider that hands out one FakePage and counts releases."""

    def __init__(self, page=None):
        self.page = page or FakePage()
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def session(self):
        self.opened += 1
        try:
            yield self.page
        finally:
            self.closed += 1



class SlowStore:
    """KeyValueStore whose every call blocks the calling thread for ``delay`` seconds."""

    def __init__(self, delay=0.3, values=None):
        self.delay = delay
        self.values = dict(values or {})

    def get(self, key):
        time.sleep(self.delay)
        return self.values.get(key)

    def put(self, key, value):
        time.sleep(self.delay)
        self.values[key] = value

    def list_keys(self, prefix):
        time.sleep(self.delay)
        return sorted(k for k in self.values if k.startswith(prefix))


async def run_with_heartbeat(coro, interval=0.02):
    """Await ``coro`` beside a ticking task; return (result, longest gap between ticks)."""
    gaps = []
    done = False

    async def heartbeat():
        last = time.monotonic()
        while not done:
            await asyncio.sleep(interval)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    ticker = asyncio.create_task(heartbeat())
    await asyncio.sleep(0)
    try:
        result = await coro
    finally:
        done = True
        await ticker
    return result, max(gaps)
