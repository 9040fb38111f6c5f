"""
Cook County court name search -- find civil cases by party name.

Two passes:
  1. The case-search JSON API (``?LastName=``), rendered in the browser session.
  2. If the API yields nothing, the HTML search form: locate the name input and
     submit button through resolve_selector(), submit, and parse the result table.

Both passes tag results with the court name. An optional ``divisions`` list keeps
only cases whose division matches (case-insensitive).

Input: ``{"name": "Smith", "divisions": ["Law"]}``
"""
import json
from typing import Any
from urllib.parse import quote

from bs4 import BeautifulSoup
from pydantic import ValidationError

from portalscrape.errors import StepTimeoutError
from portalscrape.scrapers.base import (
    CamelModel,
    RequiredText,
    ScrapeContext,
    ScraperCategory,
    ScraperMetadata,
    ScrapeResult,
    describe_input_error,
    resolve_selector,
    wrap_result,
)

PORTAL_ID = "court-name-search"
COURT_NAME = "Cook County Circuit Court"
SEARCH_API_URL = "https://casesearch.cookcountyclerkofcourt.org/CivilCaseSearchAPI/api/CivilCases"
SEARCH_FORM_URL = "https://casesearch.cookcountyclerkofcourt.org/CivilCaseSearchAPI.html"

NAME_INPUT_SELECTORS = ['input[name="lastName"]', "#lastName", 'input[placeholder*="name" i]']
SEARCH_BUTTON_SELECTORS = [
    'button[type="submit"]', "#searchButton", ".search-btn", 'input[type="submit"]',
]

MAX_HTML_ROWS = 100


class CourtNameSearchInput(CamelModel):
    name: RequiredText
    divisions: list[str] | None = None


class CaseMatch(CamelModel):
    case_number: str
    parties: str | None = None
    court: str | None = None
    division: str | None = None
    status: str | None = None
    filing_date: str | None = None
    judge: str | None = None


class CourtNameSearchData(CamelModel):
    search_name: str
    total_results: int
    cases: list[CaseMatch]


def _first(item: dict, *keys: str) -> str | None:
    for key in keys:
        value = item.get(key)
        if value:
            return str(value)
    return None


def _parse_api_cases(body_text: str) -> list[CaseMatch]:
    """Cases from the JSON API body; anything other than a JSON list yields none."""
    try:
        items = json.loads(body_text)
    except json.JSONDecodeError:
        return []
    if not isinstance(items, list):
        return []
    return [
        CaseMatch(
            case_number=_first(item, "caseNumber", "caseId") or "",
            parties=_first(item, "caseTitle", "parties"),
            court=COURT_NAME,
            division=_first(item, "division", "caseType"),
            status=_first(item, "caseStatus", "status"),
            filing_date=_first(item, "filingDate", "fileDate"),
            judge=_first(item, "judgeName", "judge"),
        )
        for item in items
        if isinstance(item, dict)
    ]


def _parse_result_rows(html: str) -> list[CaseMatch]:
    """Cases from the HTML results table, skipping header rows."""
    soup = BeautifulSoup(html, "html.parser")
    rows = soup.select('table tr, .search-result, .case-row, [data-testid="case-row"]')

    cases: list[CaseMatch] = []
    for row in rows[:MAX_HTML_ROWS]:
        cells = [td.get_text(strip=True) for td in row.find_all("td")]
        if len(cells) < 2:
            continue
        case_number = cells[0]
        if not case_number or "case" in case_number.lower():
            continue
        cases.append(CaseMatch(
            case_number=case_number,
            parties=cells[1],
            court=COURT_NAME,
            division=cells[2] if len(cells) >= 3 else None,
            status=cells[3] if len(cells) >= 4 else None,
            filing_date=cells[4] if len(cells) >= 5 else None,
        ))
    return cases


def _filter_divisions(cases: list[CaseMatch], divisions: list[str] | None) -> list[CaseMatch]:
    if not divisions:
        return cases
    wanted = {d.strip().lower() for d in divisions}
    return [c for c in cases if c.division and c.division.lower() in wanted]


class CourtNameSearchScraper:
    metadata = ScraperMetadata(
        id=PORTAL_ID,
        name="Cook County Court Name Search",
        category=ScraperCategory.COURT,
        version="0.1.0",
        requires_auth=False,
    )

    def __init__(self, settle_delay: float = 2.0):
        self.settle_delay = settle_delay

    async def _search_form(self, page, search_name: str) -> list[CaseMatch]:
        await page.goto(SEARCH_FORM_URL, timeout_ms=20_000)

        name_sel = await resolve_selector(page, NAME_INPUT_SELECTORS)
        if name_sel is None:
            return []
        await page.fill(name_sel, search_name)

        button_sel = await resolve_selector(page, SEARCH_BUTTON_SELECTORS)
        if button_sel is None:
            return []
        await page.click(button_sel)
        await page.wait_for_settle(timeout_ms=15_000)
        await page.pause(self.settle_delay)

        return _parse_result_rows(await page.content())

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        try:
            request = CourtNameSearchInput.model_validate(payload)
        except ValidationError as exc:
            return wrap_result(PORTAL_ID, False, error=describe_input_error(exc))

        search_name = request.name

        async with context.browser.session() as page:
            try:
                await page.goto(f"{SEARCH_API_URL}?LastName={quote(search_name, safe='')}", timeout_ms=30_000)
                cases = _parse_api_cases(await page.body_text())
                if not cases:
                    cases = await self._search_form(page, search_name)
            except StepTimeoutError as exc:
                return wrap_result(PORTAL_ID, False, error=str(exc))

        cases = _filter_divisions(cases, request.divisions)
        return wrap_result(PORTAL_ID, True, CourtNameSearchData(
            search_name=search_name,
            total_results=len(cases),
            cases=cases,
        ))
