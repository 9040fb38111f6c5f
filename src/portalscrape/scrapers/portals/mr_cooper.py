"""
Mr. Cooper mortgage scraper -- authenticated loan servicing portal.

Logs in and rejects the session if the landing page still looks like a login
screen (error banner, CAPTCHA, login URL). It then reads the loan figures and next
payment date from the dashboard. Payment history lives on a separate page and
is best effort: if the link is missing or the page times out, the dashboard data is
still returned with an empty history.

Credentials: ``mrcooper:username`` and ``mrcooper:password`` in the shared store.
Input: ``{"property": "123 Main St"}`` (a label echoed back in the result)
"""
import logging
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
    resolve_selector,
    submit_login_form,
    wrap_result,
)
from portalscrape.scrapers.html import first_text, parse_currency, parse_rate

logger = logging.getLogger(__name__)

PORTAL_ID = "mr-cooper"
LOGIN_URL = "https://www.mrcooper.com/login"

USERNAME_SELECTORS = [
    "#username", 'input[name="username"]', 'input[name="email"]', "#loginUsername",
    'input[type="email"]', 'input[data-testid="username"]',
]
PASSWORD_SELECTORS = [
    "#password", 'input[name="password"]', "#loginPassword", 'input[type="password"]',
    'input[data-testid="password"]',
]
SUBMIT_SELECTORS = [
    'button[type="submit"]', "#loginButton", 'button[data-testid="login-button"]',
    'input[type="submit"]', ".login-button", "button.btn-primary",
]
# :has-text() is Playwright-only; the resolver skips it if the engine rejects it
HISTORY_LINK_SELECTORS = [
    'a[href*="payment-history"]', 'a[href*="paymenthistory"]', 'a[href*="payments"]',
    '[data-testid="payment-history-link"]', ".payment-history-link",
    'a:has-text("Payment History")', '.nav-link[href*="history"]',
]

_ERROR_SELECTORS = (
    ".error-message", ".login-error", '[data-testid="error-message"]', ".alert-danger",
    ".alert-error", "#errorMessage", ".form-error",
)
_CAPTCHA_SELECTORS = (
    'iframe[src*="recaptcha"]', 'iframe[src*="captcha"]', ".g-recaptcha", "#captcha",
    '[data-testid="captcha"]',
)
_LOGIN_URL_MARKERS = ("/login", "/signin")

MAX_HISTORY_ROWS = 24


class MrCooperInput(CamelModel):
    property: RequiredText


class PaymentHistoryEntry(CamelModel):
    date: str
    amount: float
    principal: float | None = None
    interest: float | None = None
    escrow: float | None = None


class MortgageData(CamelModel):
    property: str
    current_balance: float
    monthly_payment: float
    escrow_balance: float
    interest_rate: float
    payoff_amount: float | None = None
    next_payment_date: str | None = None
    payment_history: list[PaymentHistoryEntry] = []


def _login_rejected(html: str, url: str) -> bool:
    """True if the post-login page shows an error, a CAPTCHA, or is still the login page."""
    soup = BeautifulSoup(html, "html.parser")
    if first_text(soup, *_ERROR_SELECTORS):
        return True
    if any(soup.select_one(sel) is not None for sel in _CAPTCHA_SELECTORS):
        return True
    return any(marker in url for marker in _LOGIN_URL_MARKERS)


def _parse_dashboard(html: str, property_label: str) -> MortgageData:
    soup = BeautifulSoup(html, "html.parser")
    return MortgageData(
        property=property_label,
        current_balance=parse_currency(first_text(
            soup, '[data-testid="current-balance"]', '[data-testid="principal-balance"]',
            ".current-balance", ".principal-balance", ".unpaid-balance", "#currentBalance",
            "#principalBalance", ".loan-balance .amount", ".balance-amount",
        )),
        monthly_payment=parse_currency(first_text(
            soup, '[data-testid="monthly-payment"]', ".monthly-payment", ".payment-amount",
            "#monthlyPayment", ".total-payment .amount", ".payment-due .amount",
        )),
        escrow_balance=parse_currency(first_text(
            soup, '[data-testid="escrow-balance"]', ".escrow-balance", "#escrowBalance",
            ".escrow .amount", ".escrow-amount",
        )),
        interest_rate=parse_rate(first_text(
            soup, '[data-testid="interest-rate"]', ".interest-rate", "#interestRate",
            ".rate-value", ".loan-rate",
        )),
        payoff_amount=parse_currency(first_text(
            soup, '[data-testid="payoff-amount"]', ".payoff-amount", "#payoffAmount", ".payoff .amount",
        )) or None,
        next_payment_date=first_text(
            soup, '[data-testid="next-payment-date"]', ".next-payment-date", "#nextPaymentDate",
            ".payment-due-date", ".due-date",
        ) or None,
    )


def _optional_amount(cells: list[str], index: int) -> float | None:
    if len(cells) <= index:
        return None
    return parse_currency(cells[index]) or None


def _parse_payment_history(html: str) -> list[PaymentHistoryEntry]:
    """Payment rows from the history table, falling back to the card layout."""
    soup = BeautifulSoup(html, "html.parser")
    entries: list[PaymentHistoryEntry] = []

    rows = soup.select(
        ".payment-history-table tr, .payment-history tbody tr, "
        '[data-testid="payment-history-row"], .transaction-row, .history-table tbody tr'
    )
    for row in rows[:MAX_HISTORY_ROWS]:
        cells = [td.get_text(strip=True) for td in row.find_all("td")]
        if len(cells) < 2:
            continue
        if not cells[0] or "date" in cells[0].lower():
            continue
        amount = parse_currency(cells[1])
        if amount <= 0:
            continue
        entries.append(PaymentHistoryEntry(
            date=cells[0],
            amount=amount,
            principal=_optional_amount(cells, 2),
            interest=_optional_amount(cells, 3),
            escrow=_optional_amount(cells, 4),
        ))
    if entries:
        return entries

    cards = soup.select('.payment-card, .payment-item, .transaction-item, [data-testid="payment-entry"]')
    for card in cards[:MAX_HISTORY_ROWS]:
        date_el = card.select_one('.date, .payment-date, [data-testid="payment-date"]')
        amount_el = card.select_one('.amount, .payment-amount, [data-testid="payment-amount"]')
        if date_el is None or amount_el is None:
            continue
        entries.append(PaymentHistoryEntry(
            date=date_el.get_text(strip=True),
            amount=parse_currency(amount_el.get_text(strip=True)),
        ))
    return entries


class MrCooperScraper:
    metadata = ScraperMetadata(
        id=PORTAL_ID,
        name="Mr. Cooper",
        category=ScraperCategory.MORTGAGE,
        version="0.1.0",
        requires_auth=True,
        credential_keys=("mrcooper:username", "mrcooper:password"),
    )

    def __init__(self, settle_delay: float = 3.0):
        self.settle_delay = settle_delay

    async def _payment_history(self, page) -> list[PaymentHistoryEntry]:
        link_sel = await resolve_selector(page, HISTORY_LINK_SELECTORS)
        if link_sel is None:
            return []
        try:
            await page.click(link_sel)
            await page.wait_for_settle(timeout_ms=15_000)
            await page.pause(self.settle_delay)
            return _parse_payment_history(await page.content())
        except StepTimeoutError as exc:
            logger.info("Mr. Cooper payment history skipped: %s", exc)
            return []

    async def execute(self, context: ScrapeContext, payload: Any) -> ScrapeResult:
        try:
            request = MrCooperInput.model_validate(payload)
        except ValidationError as exc:
            return wrap_result(PORTAL_ID, False, error=describe_input_error(exc))

        username, password = await read_credentials(context.store, self.metadata.credential_keys)
        if not username or not password:
            return wrap_result(PORTAL_ID, False, error="Mr. Cooper credentials not configured")

        async with context.browser.session() as page:
            try:
                await page.goto(LOGIN_URL, timeout_ms=20_000)
                await submit_login_form(
                    page, username, password,
                    username_selectors=USERNAME_SELECTORS,
                    password_selectors=PASSWORD_SELECTORS,
                    submit_selectors=SUBMIT_SELECTORS,
                    settle_delay=self.settle_delay,
                )
                if _login_rejected(await page.content(), page.url):
                    raise PortalError(
                        "Login failed -- credentials may be incorrect, CAPTCHA present, or 2FA required"
                    )

                data = _parse_dashboard(await page.content(), request.property)
                if data.current_balance == 0 and data.monthly_payment == 0:
                    raise PortalError(
                        "No mortgage data found -- dashboard may have changed or property not found"
                    )
                data.payment_history = await self._payment_history(page)
            except (PortalError, StepTimeoutError) as exc:
                return wrap_result(PORTAL_ID, False, error=str(exc))

        return wrap_result(PORTAL_ID, True, data)
