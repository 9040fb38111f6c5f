"""
ComEd (Commonwealth Edison) scraper -- authenticated utility account portal.

ComEd's "My Bill & Usage" pages sit behind an Azure B2C login. The flow is:
open the bill activity page (which redirects to B2C), fill username and password
through the resilient selector lists, submit, and confirm the browser left the
B2C/login URL. The rendered dashboard is then parsed with BeautifulSoup.

Credentials: ``comed:username`` and ``comed:password`` in the shared store.
Input: ``{"accountNumber": "..."}``
"""
from typing import Any

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
    read_credentials,
    submit_login_form,
    wrap_result,
)
from portalscrape.scrapers.html import first_text, parse_currency, parse_quantity

PORTAL_ID = "comed"
BILL_ACTIVITY_URL = "https://secure.comed.com/MyAccount/MyBillUsage/pages/secure/BillActivity.aspx"

USERNAME_SELECTORS = [
    "#signInName", "#username", 'input[name="username"]', 'input[name="email"]',
    'input[type="email"]', "#userId", 'input[data-testid="username"]',
]
PASSWORD_SELECTORS = ['#password', 'input[name="password"]', 'input[type="password"]']
SUBMIT_SELECTORS = [
    'button[type="submit"]', "#loginButton", 'input[type="submit"]',
    "button.btn-primary", ".login-btn",
]

# Still on one of these after submit means B2C rejected the login
_LOGIN_URL_MARKERS = ("/login", "/signin", "B2C")

MAX_BILLING_ROWS = 24


class ComEdInput(CamelModel):
    account_number: RequiredText


class BillingEntry(CamelModel):
    date: str
    amount: float
    kwh_usage: float | None = None


class ComEdData(CamelModel):
    account_number: str
    current_balance: float
    due_date: str | None = None
    billing_history: list[BillingEntry] = []


def _parse_account(html: str, account_number: str) -> ComEdData:
    """Extract balance, due date and billing history from the dashboard HTML."""
    soup = BeautifulSoup(html, "html.parser")

    current_balance = parse_currency(first_text(
        soup, ".current-balance", ".balance-amount", ".amount-due",
        '[data-testid="balance"]', "#currentBalance",
    ))
    due_date = first_text(
        soup, ".due-date", ".payment-due-date", '[data-testid="due-date"]', "#dueDate",
    ) or None

    history: list[BillingEntry] = []
    rows = soup.select(
        ".billing-history tr, .bill-history tbody tr, "
        '[data-testid="billing-row"], .transaction-row'
    )
    for row in rows[:MAX_BILLING_ROWS]:
        cells = row.find_all("td")
        if len(cells) < 2:
            continue
        date_text = cells[0].get_text(strip=True)
        if not date_text or "date" in date_text.lower():
            continue  # header row
        amount = parse_currency(cells[1].get_text(strip=True))
        if amount <= 0:
            continue
        kwh_usage = parse_quantity(cells[2].get_text(strip=True)) if len(cells) >= 3 else None
        history.append(BillingEntry(date=date_text, amount=amount, kwh_usage=kwh_usage))

    return ComEdData(
        account_number=account_number,
        current_balance=current_balance,
        due_date=due_date,
        billing_history=history,
    )


class ComEdScraper:
    metadata = ScraperMetadata(
        id=PORTAL_ID,
        name="ComEd (Commonwealth Edison)",
        category=ScraperCategory.UTILITY,
        version="0.1.0",
        requires_auth=True,
        credential_keys=("comed:username", "comed:password"),
    )

    def __init__(self, settle_delay: float = 3.0):
        self.settle_delay = settle_delay

    async def _login(self, page, username: str, password: str) -> None:
        await submit_login_form(
            page, username, password,
            username_selectors=USERNAME_SELECTORS,
            password_selectors=PASSWORD_SELECTORS,
            submit_selectors=SUBMIT_SELECTORS,
            settle_delay=self.settle_delay,
        )
        if any(marker in page.url for marker in _LOGIN_URL_MARKERS):
            raise PortalError("Login failed -- check credentials or CAPTCHA")

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        try:
            request = ComEdInput.model_validate(payload)
        except ValidationError as exc:
            return wrap_result(PORTAL_ID, False, error=describe_input_error(exc))

        username, password = await read_credentials(context.store, self.metadata.credential_keys)
        if not username or not password:
            return wrap_result(PORTAL_ID, False, error="ComEd credentials not configured")

        async with context.browser.session() as page:
            try:
                await page.goto(BILL_ACTIVITY_URL, timeout_ms=30_000)
                await self._login(page, username, password)
                html = await page.content()
            except (PortalError, StepTimeoutError) as exc:
                return wrap_result(PORTAL_ID, False, error=str(exc))

        return wrap_result(PORTAL_ID, True, _parse_account(html, request.account_number))
