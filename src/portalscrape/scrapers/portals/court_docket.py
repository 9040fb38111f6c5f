"""
Cook County civil docket scraper -- public case lookup by case number.

The Circuit Clerk's case search is backed by a JSON API that only answers when
loaded in a real browser session, so the browser navigates to the API URL and the
rendered body text is parsed as JSON. Field names differ between API revisions;
each output field takes the first populated key.

Input: ``{"caseNumber": "2024L001234"}``
"""
import json
from typing import Any
from urllib.parse import quote

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
    wrap_result,
)

PORTAL_ID = "court-docket"
CASE_API_URL = "https://casesearch.cookcountyclerkofcourt.org/CivilCaseSearchAPI/api/CivilCases"


class CourtDocketInput(CamelModel):
    case_number: RequiredText


class DocketEntry(CamelModel):
    date: str
    description: str
    filed_by: str | None = None


class DocketData(CamelModel):
    case_number: str
    parties: str | None = None
    judge: str | None = None
    status: str | None = None
    entries: list[DocketEntry] = []
    next_hearing: str | None = None


def _pick(record: dict, *keys: str) -> str | None:
    for key in keys:
        value = record.get(key)
        if value:
            return str(value)
    return None


def _parse_case(case: dict, case_number: str) -> DocketData:
    """Map one API case object onto DocketData."""
    raw_entries = case.get("activities") or case.get("docketEntries") or []
    if not isinstance(raw_entries, list):
        raw_entries = []
    entries = [
        DocketEntry(
            date=_pick(e, "activityDate", "date") or "",
            description=_pick(e, "activityDescription", "description") or "",
            filed_by=_pick(e, "filedBy"),
        )
        for e in raw_entries
        if isinstance(e, dict)
    ]
    return DocketData(
        case_number=case_number,
        parties=_pick(case, "caseTitle", "parties"),
        judge=_pick(case, "judgeName", "judge"),
        status=_pick(case, "caseStatus", "status"),
        entries=entries,
        next_hearing=_pick(case, "nextCourtDate", "nextHearing"),
    )


class CourtDocketScraper:
    metadata = ScraperMetadata(
        id=PORTAL_ID,
        name="Cook County Court Docket",
        category=ScraperCategory.COURT,
        version="0.1.0",
        requires_auth=False,
    )

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        try:
            request = CourtDocketInput.model_validate(payload)
        except ValidationError as exc:
            return wrap_result(PORTAL_ID, False, error=describe_input_error(exc))

        case_number = request.case_number

        async with context.browser.session() as page:
            try:
                await page.goto(f"{CASE_API_URL}/{quote(case_number, safe='')}", timeout_ms=20_000)
                body_text = await page.body_text()
            except StepTimeoutError as exc:
                return wrap_result(PORTAL_ID, False, error=str(exc))

        try:
            case = json.loads(body_text)
        except json.JSONDecodeError:
            case = None

        if not isinstance(case, dict):
            return wrap_result(
                PORTAL_ID, False,
                error="Could not parse case data -- site may require HTML scraping adaptation",
            )
        return wrap_result(PORTAL_ID, True, _parse_case(case, case_number))
