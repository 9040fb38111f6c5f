"""
Generic dispatch from a portal id to its registered scraper plugin.

Order of checks, each short-circuiting:

  1. portal id format (400) -- before the registry or gap store are touched
  2. registry lookup; a miss records a gap (best effort) and returns 404
  3. request body must be JSON (400)
  4. plugin.execute(); an escaping exception becomes a 500 envelope

The plugin's own envelope, successful or not, is returned verbatim with 200.
Nothing here retries; retry policy belongs to the caller.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from portalscrape.gaps import GapTracker
from portalscrape.scrapers.base import PORTAL_ID_PATTERN, ScrapeContext, wrap_result
from portalscrape.scrapers.registry import ScraperRegistry

logger = logging.getLogger(__name__)

_PORTAL_ID_RE = re.compile(PORTAL_ID_PATTERN)

NO_SCRAPER_ERROR = "no_scraper_available"
RECOMMENDED_ACTION = "register_scraper"


def is_valid_portal_id(portal_id: str) -> bool:
    return _PORTAL_ID_RE.fullmatch(portal_id) is not None


@dataclass
class DispatchOutcome:
    status_code: int
    body: dict[str, Any]


class Dispatcher:
    def __init__(self, registry: ScraperRegistry, gap_tracker: GapTracker):
        self.registry = registry
        self.gap_tracker = gap_tracker

    async def dispatch(self, portal_id: str, raw_body: bytes, context: ScrapeContext) -> DispatchOutcome:
        if not is_valid_portal_id(portal_id):
            return DispatchOutcome(400, {
                "success": False,
                "error": "invalid_portal_id",
                "message": "portal id must be 1-64 characters of lowercase letters, digits or hyphens",
            })

        plugin = self.registry.get(portal_id)
        if plugin is None:
            return await self._not_found(portal_id)

        try:
            payload = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return DispatchOutcome(400, {
                "success": False,
                "error": "invalid_json_body",
                "portal": portal_id,
            })

        try:
            result = await plugin.execute(context, payload)
        except Exception as exc:
            logger.exception("Scraper %s raised during execute", portal_id)
            message = str(exc) or type(exc).__name__
            return DispatchOutcome(500, wrap_result(portal_id, False, error=message).to_response())

        if not result.success:
            logger.info("Scraper %s reported failure: %s", portal_id, result.error)
        return DispatchOutcome(200, result.to_response())

    async def _not_found(self, portal_id: str) -> DispatchOutcome:
        logger.warning("No scraper registered for portal %s", portal_id)
        try:
            # blocking store round trips; keep them off the event loop
            record = await asyncio.to_thread(self.gap_tracker.record_miss, portal_id)
            logger.info("Gap for %s now requested %d time(s)", portal_id, record.count)
        except Exception as exc:
            logger.warning("Gap tracking failed for %s: %s", portal_id, exc)

        return DispatchOutcome(404, {
            "success": False,
            "error": NO_SCRAPER_ERROR,
            "portal": portal_id,
            "recommendation": {
                "portalId": portal_id,
                "action": RECOMMENDED_ACTION,
            },
        })
