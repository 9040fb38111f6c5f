"""
Single-portal spot-check CLI.

Runs one scrape through the same dispatcher the HTTP endpoint uses and prints the
result envelope as JSON. Useful for checking a portal's markup after a site change.

Usage:
    scrape --list
    scrape --portal court-docket --input '{"caseNumber": "2024L001234"}'
    scrape --portal comed --input '{"accountNumber": "0123456789"}' --headed

Entrypoint: portalscrape.scrape:main (registered as `scrape` in pyproject.toml)
"""

import argparse
import asyncio
import json
import sys

from portalscrape.browser.session import PlaywrightBrowser
from portalscrape.db.session import SessionLocal, init_db
from portalscrape.dispatch import Dispatcher
from portalscrape.gaps import GapTracker
from portalscrape.logging_config import configure_logging
from portalscrape.scrapers.base import ScrapeContext
from portalscrape.scrapers.registry import build_registry
from portalscrape.settings import get_settings
from portalscrape.store import SqlKeyValueStore


def _print_portals(registry) -> None:
    metas = registry.list()
    col_id = max([len("Portal")] + [len(m.id) for m in metas])
    col_cat = max([len("Category")] + [len(m.category.value) for m in metas])
    header = f" {'Portal':<{col_id}}  {'Category':<{col_cat}}  Auth  Name"
    print(f"\n{header}")
    print(" " + "─" * (len(header) - 1))
    for m in metas:
        auth = "yes" if m.requires_auth else "no"
        print(f" {m.id:<{col_id}}  {m.category.value:<{col_cat}}  {auth:<4}  {m.name}")
    print()


def main() -> None:
    """CLI entrypoint registered as `scrape` in pyproject.toml."""
    parser = argparse.ArgumentParser(
        description="Spot-check a single portal by running its scraper and printing the result."
    )
    parser.add_argument("--list", action="store_true", help="List registered portals and exit")
    parser.add_argument("--portal", metavar="PORTAL_ID", help="Portal id, e.g. court-docket")
    parser.add_argument(
        "--input",
        default="{}",
        metavar="JSON",
        help="Scraper input as a JSON object (default: {})",
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        default=False,
        help="Show the browser window instead of running headless",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_dir, settings.log_level)
    registry = build_registry()

    if args.list:
        _print_portals(registry)
        return
    if not args.portal:
        parser.error("--portal is required unless --list is given")

    if args.headed:
        settings = settings.model_copy(update={"browser_headless": False})

    init_db()
    store = SqlKeyValueStore(SessionLocal)
    dispatcher = Dispatcher(registry, GapTracker(store))
    context = ScrapeContext(browser=PlaywrightBrowser(settings), store=store, settings=settings)

    outcome = asyncio.run(dispatcher.dispatch(args.portal, args.input.encode(), context))
    print(json.dumps(outcome.body, indent=2))

    if outcome.status_code != 200 or not outcome.body.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
