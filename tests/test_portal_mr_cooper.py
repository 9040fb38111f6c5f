"""
Tests for the Mr. Cooper mortgage scraper.

Covers:
- _login_rejected(): error banner, CAPTCHA, login URL
- _parse_dashboard() / _parse_payment_history(): loan figures, table and card layouts
- execute(): validation, credentials, rejected login, empty dashboard,
  best-effort payment history, session release
"""
import asyncio

import pytest

from portalscrape.errors import StepTimeoutError
from portalscrape.scrapers.portals.mr_cooper import (
    MrCooperScraper,
    _login_rejected,
    _parse_dashboard,
    _parse_payment_history,
)

DASHBOARD_HTML = """
<html><body>
  <div data-testid="current-balance">$312,450.12</div>
  <div class="monthly-payment">$2,410.00</div>
  <div class="escrow-balance">$3,100.50</div>
  <div class="interest-rate">6.125%</div>
  <div class="next-payment-date">06/01/2026</div>
  <a href="/account/payment-history">Payment History</a>
  <table class="payment-history-table">
    <tr><td>Date</td><td>Amount</td><td>Principal</td><td>Interest</td><td>Escrow</td></tr>
    <tr><td>05/01/2026</td><td>$2,410.00</td><td>$812.00</td><td>$1,598.00</td><td>$0.00</td></tr>
    <tr><td>04/01/2026</td><td>$2,410.00</td></tr>
  </table>
</body></html>
"""

CARD_HISTORY_HTML = """
<div class="payment-card"><span class="date">03/01/2026</span><span class="amount">$2,400.00</span></div>
<div class="payment-card"><span class="date">02/01/2026</span></div>
"""

LOGIN_ELEMENTS = {"#username", "#password", 'button[type="submit"]'}
DASHBOARD_URL = "https://www.mrcooper.com/dashboard"


@pytest.fixture()
def credentials(kv_store):
    kv_store.put("mrcooper:username", "owner@example.com")
    kv_store.put("mrcooper:password", "escrow!")


def _run(browser, make_context, payload):
    return asyncio.run(MrCooperScraper(settle_delay=0).execute(make_context(browser), payload))


class TestLoginRejected:
    def test_dashboard_is_accepted(self):
        assert _login_rejected(DASHBOARD_HTML, DASHBOARD_URL) is False

    @pytest.mark.parametrize("html", [
        '<div class="alert-danger">Invalid username or password</div>',
        '<iframe src="https://www.google.com/recaptcha/api2/anchor"></iframe>',
        '<div class="g-recaptcha"></div>',
    ])
    def test_error_or_captcha(self, html):
        assert _login_rejected(html, DASHBOARD_URL) is True

    def test_empty_error_banner_is_ignored(self):
        assert _login_rejected('<div class="error-message"> </div>', DASHBOARD_URL) is False

    def test_still_on_login_url(self):
        assert _login_rejected("<html></html>", "https://www.mrcooper.com/login") is True


class TestParsing:
    def test_dashboard_figures(self):
        data = _parse_dashboard(DASHBOARD_HTML, "123 Main St")
        assert data.property == "123 Main St"
        assert data.current_balance == 312450.12
        assert data.monthly_payment == 2410.0
        assert data.escrow_balance == 3100.5
        assert data.interest_rate == 6.125
        assert data.payoff_amount is None
        assert data.next_payment_date == "06/01/2026"

    def test_history_table(self):
        history = _parse_payment_history(DASHBOARD_HTML)
        assert [(h.date, h.amount) for h in history] == [("05/01/2026", 2410.0), ("04/01/2026", 2410.0)]
        assert (history[0].principal, history[0].interest, history[0].escrow) == (812.0, 1598.0, None)
        assert history[1].principal is None

    def test_history_card_fallback(self):
        history = _parse_payment_history(CARD_HISTORY_HTML)
        assert [(h.date, h.amount) for h in history] == [("03/01/2026", 2400.0)]


class TestExecute:
    def test_metadata(self):
        meta = MrCooperScraper.metadata
        assert meta.id == "mr-cooper"
        assert meta.category.value == "mortgage"
        assert meta.credential_keys == ("mrcooper:username", "mrcooper:password")

    def test_requires_property(self, make_browser, make_context):
        browser = make_browser()
        result = _run(browser, make_context, {"property": ""})
        assert result.error == "property is required"
        assert browser.opened == 0

    def test_missing_credentials(self, make_browser, make_context):
        result = _run(make_browser(), make_context, {"property": "123 Main St"})
        assert result.error == "Mr. Cooper credentials not configured"

    def test_dashboard_and_history(self, make_browser, make_context, credentials):
        browser = make_browser(
            elements=LOGIN_ELEMENTS | {'a[href*="payment-history"]'},
            url_after_click=DASHBOARD_URL,
            html_after_click=DASHBOARD_HTML,
        )
        result = _run(browser, make_context, {"property": "123 Main St"})

        assert result.success is True
        assert result.data.current_balance == 312450.12
        assert len(result.data.payment_history) == 2
        assert browser.page.clicked == ['button[type="submit"]', 'a[href*="payment-history"]']
        assert browser.opened == browser.closed == 1

    def test_history_link_missing_returns_dashboard_only(self, make_browser, make_context, credentials):
        browser = make_browser(
            elements=LOGIN_ELEMENTS, url_after_click=DASHBOARD_URL, html_after_click=DASHBOARD_HTML,
        )
        result = _run(browser, make_context, {"property": "123 Main St"})
        assert result.success is True
        assert result.data.payment_history == []

    def test_history_timeout_returns_dashboard_only(self, make_browser, make_context, credentials):
        browser = make_browser(
            elements=LOGIN_ELEMENTS | {'a[href*="payment-history"]'},
            url_after_click=DASHBOARD_URL,
            html_after_click=DASHBOARD_HTML,
        )

        async def settle_times_out_after_history_click(*, timeout_ms=20_000):
            if len(browser.page.clicked) > 1:
                raise StepTimeoutError("Timed out waiting for payment history")

        browser.page.wait_for_settle = settle_times_out_after_history_click
        result = _run(browser, make_context, {"property": "123 Main St"})

        assert result.success is True
        assert result.data.monthly_payment == 2410.0
        assert result.data.payment_history == []

    def test_login_rejected(self, make_browser, make_context, credentials):
        browser = make_browser(
            elements=LOGIN_ELEMENTS,
            url_after_click=DASHBOARD_URL,
            html_after_click='<div class="login-error">Account locked</div>',
        )
        result = _run(browser, make_context, {"property": "123 Main St"})
        assert result.success is False
        assert result.error.startswith("Login failed")

    def test_empty_dashboard_is_failed_result(self, make_browser, make_context, credentials):
        browser = make_browser(
            elements=LOGIN_ELEMENTS, url_after_click=DASHBOARD_URL, html_after_click="<html></html>",
        )
        result = _run(browser, make_context, {"property": "123 Main St"})
        assert result.success is False
        assert result.error.startswith("No mortgage data found")
        assert browser.closed == 1
