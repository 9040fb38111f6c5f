"""
Cook County Treasurer property tax scraper -- public lookup by PIN.

Submits the Treasurer's PIN search form and parses the results page: property
address, tax year, first/second installment amounts, due dates and paid status,
total tax and exemptions. The results page comes in two layouts, an installment
grid and labelled per-installment fields; the grid is tried first.

Input: ``{"pin": "12-34-567-890-0000"}`` (dashes optional)
"""
import re
from datetime import date
from typing import Any, Literal

from bs4 import BeautifulSoup
from pydantic import ValidationError

from portalscrape.errors import PortalError, StepTimeoutError
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
from portalscrape.scrapers.html import first_text, parse_currency

PORTAL_ID = "cook-county-tax"
SEARCH_URL = "https://www.cookcountytreasurer.com/setsearchparameters.aspx"

PIN_INPUT_SELECTORS = ["#ContentPlaceHolder1_ASPxRoundPanel1_tbPin", 'input[name*="tbPin"]', "#pin"]
SEARCH_BUTTON_SELECTORS = [
    "#ContentPlaceHolder1_ASPxRoundPanel1_btSearch", 'input[type="submit"]', 'button[type="submit"]',
]

InstallmentStatus = Literal["paid", "unpaid", "partial"]


class CookCountyTaxInput(CamelModel):
    pin: RequiredText


class TaxInstallment(CamelModel):
    number: int
    amount: float
    due_date: str
    status: InstallmentStatus


class TaxData(CamelModel):
    pin: str
    address: str | None = None
    tax_year: int
    installments: list[TaxInstallment]
    total_tax: float
    exemptions: list[str] | None = None


def clean_pin(pin: str) -> str:
    return pin.strip().replace("-", "")


def _status_from_text(text: str) -> InstallmentStatus:
    lower = text.lower()
    # "unpaid" contains "paid"
    if "unpaid" in lower or "due" in lower or "outstanding" in lower:
        return "unpaid"
    if "partial" in lower:
        return "partial"
    if "paid" in lower:
        return "paid"
    return "unpaid"


def _grid_installments(soup: BeautifulSoup) -> list[TaxInstallment]:
    rows = soup.select("#ContentPlaceHolder1_GridView1 tr, .tax-detail-table tr, .installment-row")
    installments: list[TaxInstallment] = []
    # row 0 is the header; only the first and second installment follow
    for number, row in enumerate(rows[1:3], start=1):
        cells = [td.get_text(strip=True) for td in row.find_all("td")]
        if len(cells) < 3:
            continue
        installments.append(TaxInstallment(
            number=number,
            amount=parse_currency(cells[1]),
            due_date=cells[2],
            status=_status_from_text(" ".join(cells)),
        ))
    return installments


def _labelled_installments(soup: BeautifulSoup) -> list[TaxInstallment]:
    installments: list[TaxInstallment] = []
    for number, ordinal, default_due in ((1, "1st", "March 1"), (2, "2nd", "August 1")):
        word = "first" if number == 1 else "second"
        amount = first_text(soup, f"#ContentPlaceHolder1_lbl{ordinal}Installment", f".{word}-installment-amount")
        if not amount:
            continue
        installments.append(TaxInstallment(
            number=number,
            amount=parse_currency(amount),
            due_date=first_text(
                soup, f"#ContentPlaceHolder1_lbl{ordinal}DueDate", f".{word}-installment-due",
            ) or default_due,
            status=_status_from_text(first_text(
                soup, f"#ContentPlaceHolder1_lbl{ordinal}Status", f".{word}-installment-status",
            )),
        ))
    return installments


def _parse_tax_page(html: str, pin: str, today: date | None = None) -> TaxData:
    """Map the Treasurer results page onto TaxData."""
    soup = BeautifulSoup(html, "html.parser")
    today = today or date.today()

    address = first_text(
        soup, "#ContentPlaceHolder1_lblPropertyAddress", ".property-address", '[data-field="address"]',
    ) or None

    year_text = first_text(soup, "#ContentPlaceHolder1_lblTaxYear", ".tax-year", '[data-field="taxyear"]')
    year_match = re.search(r"\b(\d{4})\b", year_text)
    # bills are issued the year after the tax year
    tax_year = int(year_match.group(1)) if year_match else today.year - 1

    installments = _grid_installments(soup) or _labelled_installments(soup)

    total_tax = parse_currency(first_text(
        soup, "#ContentPlaceHolder1_lblTotalTax", ".total-tax-amount", '[data-field="totaltax"]',
    ))
    if total_tax == 0 and installments:
        total_tax = sum(inst.amount for inst in installments)

    exemptions: list[str] = []
    for el in soup.select(
        "#ContentPlaceHolder1_ExemptionGrid tr td:first-child, .exemption-item, .exemption-type"
    ):
        text = el.get_text(strip=True)
        if text and text.lower() not in ("exemption type", "type"):
            exemptions.append(text)

    return TaxData(
        pin=pin,
        address=address,
        tax_year=tax_year,
        installments=installments,
        total_tax=total_tax,
        exemptions=exemptions or None,
    )


class CookCountyTaxScraper:
    metadata = ScraperMetadata(
        id=PORTAL_ID,
        name="Cook County Property Tax",
        category=ScraperCategory.TAX,
        version="0.1.0",
        requires_auth=False,
    )

    def __init__(self, settle_delay: float = 2.0):
        self.settle_delay = settle_delay

    async def _search(self, page, pin: str) -> str:
        await page.goto(SEARCH_URL, timeout_ms=30_000)

        pin_sel = await resolve_selector(page, PIN_INPUT_SELECTORS)
        if pin_sel is None:
            raise PortalError("Could not find PIN input")
        await page.fill(pin_sel, pin)

        button_sel = await resolve_selector(page, SEARCH_BUTTON_SELECTORS)
        if button_sel is None:
            raise PortalError("Could not find search button")
        await page.click(button_sel)

        # results may update in place without a navigation
        await page.wait_for_settle(timeout_ms=20_000)
        await page.pause(self.settle_delay)
        return await page.content()

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        try:
            request = CookCountyTaxInput.model_validate(payload)
        except ValidationError as exc:
            return wrap_result(PORTAL_ID, False, error=describe_input_error(exc))

        pin = clean_pin(request.pin)
        if not pin:
            return wrap_result(PORTAL_ID, False, error="pin is required")

        async with context.browser.session() as page:
            try:
                html = await self._search(page, pin)
            except (PortalError, StepTimeoutError) as exc:
                return wrap_result(PORTAL_ID, False, error=str(exc))

        data = _parse_tax_page(html, pin)
        if not data.installments and data.total_tax == 0:
            return wrap_result(
                PORTAL_ID, False,
                error="No tax data found for the given PIN -- verify PIN is correct or selectors need updating",
            )
        return wrap_result(PORTAL_ID, True, data)
