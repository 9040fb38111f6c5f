"""
Centralized scraper registry.

Single source of truth for which portal ids can be served. All registration happens
in build_registry() at process start; after that the registry is only read, so it
needs no locking.
"""
from __future__ import annotations

from functools import lru_cache

from portalscrape.scrapers.base import ScraperCategory, ScraperMetadata, ScraperPlugin


class ScraperRegistry:
    def __init__(self) -> None:
        self._plugins: dict[str, ScraperPlugin] = {}

    def register(self, plugin: ScraperPlugin) -> None:
        """Add ``plugin`` under its metadata id, replacing any plugin already there."""
        self._plugins[plugin.metadata.id] = plugin

    def get(self, portal_id: str) -> ScraperPlugin | None:
        return self._plugins.get(portal_id)

    def list(self) -> list[ScraperMetadata]:
        return [plugin.metadata for plugin in self._plugins.values()]

    def list_by_category(self, category: ScraperCategory) -> list[ScraperMetadata]:
        return [meta for meta in self.list() if meta.category == category]

    def __contains__(self, portal_id: str) -> bool:
        return portal_id in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)


def build_registry() -> ScraperRegistry:
    """Register every shipped portal plugin."""
    from portalscrape.scrapers.portals.comed import ComEdScraper
    from portalscrape.scrapers.portals.cook_county_tax import CookCountyTaxScraper
    from portalscrape.scrapers.portals.court_docket import CourtDocketScraper
    from portalscrape.scrapers.portals.court_name_search import CourtNameSearchScraper
    from portalscrape.scrapers.portals.mr_cooper import MrCooperScraper
    from portalscrape.scrapers.portals.peoples_gas import PeoplesGasScraper

    registry = ScraperRegistry()
    registry.register(CourtDocketScraper())
    registry.register(CourtNameSearchScraper())
    registry.register(ComEdScraper())
    registry.register(PeoplesGasScraper())
    registry.register(CookCountyTaxScraper())
    registry.register(MrCooperScraper())
    return registry


@lru_cache
def get_registry() -> ScraperRegistry:
    return build_registry()
