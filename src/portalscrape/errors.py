"""Exception hierarchy shared by the browser adapter, plugins and dispatcher.

Two families matter to callers:

- expected, site-level failures (``PortalError``, ``StepTimeoutError``) that a
  plugin catches and turns into a failed result envelope;
- infrastructure failures (``BrowserSessionError``, ``StoreUnavailableError``)
  that propagate out of the plugin and surface as 500/503 responses.

``SelectorSyntaxError`` sits apart: only the selector resolver handles it.
"""


class ScrapeError(Exception):
    """Base class for every error raised by portalscrape itself."""


class PortalError(ScrapeError):
    """The portal did not behave as expected (login rejected, element missing)."""


class StepTimeoutError(ScrapeError):
    """A single navigation or interaction step exceeded its timeout."""


class SelectorSyntaxError(ScrapeError):
    """A candidate locator is not valid in the page's selector dialect."""


class BrowserSessionError(ScrapeError):
    """The browsing session itself failed (crashed, closed, unreachable)."""


class StoreUnavailableError(ScrapeError):
    """The shared key-value store could not be reached."""
