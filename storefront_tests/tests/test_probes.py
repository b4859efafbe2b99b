"""Tests for the performance and security probes."""
import logging
from urllib.parse import parse_qs, urlparse

import pytest

from storefront_tests import probes, workflows
from storefront_tests.testdata import GUEST_USER, PAYMENT_DATA, SQL_INJECTION_PAYLOADS, XSS_PAYLOADS


def test_scan_finds_unmasked_card_numbers_and_cvv(caplog):
    html = '<div>Card: 4242424242424242</div><span>cvv: 123</span>'
    with caplog.at_level(logging.WARNING, logger="storefront_tests.probes"):
        report = probes.scan_for_sensitive_data(html)

    assert not report.clean
    assert [finding.kind for finding in report.findings] == ["card_number_exposed", "cvv_exposed"]
    assert "ending 4242" in report.findings[0].detail
    assert "PCI DSS" in caplog.text


def test_scan_ignores_masked_numbers():
    report = probes.scan_for_sensitive_data("<div>Card: ************4242</div><input id='CardCode'>")
    assert report.clean


def test_warn_if_insecure_only_flags_plain_http():
    assert probes.warn_if_insecure("https://demowebshop.tricentis.com/onepagecheckout").clean
    report = probes.warn_if_insecure("http://127.0.0.1:5000/checkout/paymentinfo")
    assert [finding.kind for finding in report.findings] == ["insecure_transport"]


def test_exceeds_threshold(caplog):
    with caplog.at_level(logging.WARNING, logger="storefront_tests.probes"):
        assert probes.exceeds_threshold("search_results", 1500)
    assert "threshold 1000 ms" in caplog.text
    assert not probes.exceeds_threshold("homepage", 100)


def test_unknown_threshold_kind_is_a_key_error():
    with pytest.raises(KeyError):
        probes.exceeds_threshold("teleport", 1)


@pytest.mark.asyncio
@pytest.mark.performance
async def test_measure_page_load_against_mock(page, mock_storefront):
    metrics = await probes.measure_page_load(page, "/")

    assert metrics.url == "/"
    assert metrics.total_load_time > 0
    assert metrics.dom_content_loaded >= 0
    resources = await probes.measure_resource_load_times(page)
    assert isinstance(resources, dict)


@pytest.mark.asyncio
@pytest.mark.security
async def test_audit_payment_page_on_mock_card_form(page):
    await workflows.add_product_to_cart(page, "book")
    await workflows.proceed_to_checkout(page)
    await workflows.checkout_as_guest(page)
    await workflows.fill_billing_address(page, GUEST_USER)
    await workflows.validate_shipping_address(page, GUEST_USER)
    await workflows.select_shipping_method(page, "Ground")
    await workflows.fill_payment_method(page, "Payments.Manual")
    await page.locator("#CardNumber").fill(PAYMENT_DATA.card_number)

    report = await probes.audit_payment_page(page)

    # The mock is served over plain HTTP; the typed card number lives in the
    # input's value, not in the page source.
    assert [finding.kind for finding in report.findings] == ["insecure_transport"]


class _StubResponse:
    def __init__(self, url, headers=None, cookies=()):
        self.url = url
        self._headers = headers or {}
        self._cookies = list(cookies)

    async def all_headers(self):
        return self._headers

    async def header_values(self, name):
        return self._cookies if name == "set-cookie" else []


@pytest.mark.asyncio
async def test_audit_response_headers_lists_missing_headers():
    response = _StubResponse("http://127.0.0.1/login", {"x-frame-options": "SAMEORIGIN"})

    report = await probes.audit_response_headers(response)

    details = [finding.detail for finding in report.findings]
    assert len(details) == 3
    assert not any("X-Frame-Options" in detail for detail in details)
    assert not any("Strict-Transport-Security" in detail for detail in details)


@pytest.mark.asyncio
async def test_audit_response_headers_requires_hsts_on_https():
    headers = {name: "1" for name in probes.SECURITY_HEADERS}
    report = await probes.audit_response_headers(_StubResponse("https://shop.example/login", headers))

    assert [finding.detail for finding in report.findings] == [
        "Missing Strict-Transport-Security header for HTTPS site"
    ]


@pytest.mark.asyncio
async def test_audit_session_cookies_checks_each_cookie():
    response = _StubResponse(
        "https://shop.example/login",
        cookies=["Nop.customer=abc; path=/; HttpOnly; SameSite=Lax", "pref=1; path=/"],
    )

    report = await probes.audit_session_cookies(response)

    assert [(finding.kind, finding.detail.split()[1]) for finding in report.findings] == [
        ("cookie_secure_missing", "Nop.customer"),
        ("cookie_httponly_missing", "pref"),
        ("cookie_secure_missing", "pref"),
        ("cookie_samesite_missing", "pref"),
    ]


def test_shows_throttling():
    assert probes.shows_throttling([100, 100, 120, 300, 320])
    assert not probes.shows_throttling([100, 110, 105, 120])
    assert not probes.shows_throttling([100, 900])


@pytest.mark.asyncio
@pytest.mark.security
async def test_mock_login_page_headers_and_cookies(page):
    response = await page.goto("/login")

    headers_report = await probes.audit_response_headers(response)
    cookies_report = await probes.audit_session_cookies(response)

    assert [finding.kind for finding in headers_report.findings] == ["missing_security_header"] * 4
    # Flask's session cookie is HttpOnly by default; the mock runs on plain HTTP.
    assert [finding.kind for finding in cookies_report.findings] == ["cookie_samesite_missing"]


@pytest.mark.asyncio
@pytest.mark.security
async def test_login_without_protection_is_reported(page, monkeypatch):
    monkeypatch.setattr(probes, "shows_throttling", lambda attempt_times: False)

    report = await probes.check_login_rate_limiting(page, attempts=3)

    assert [finding.kind for finding in report.findings] == ["no_brute_force_protection"]
    assert "No customer account found" in await workflows.get_validation_errors(page)


@pytest.mark.asyncio
@pytest.mark.security
async def test_lockout_message_stops_login_attempts(page):
    posts = []

    async def _locked_login(route):
        if route.request.method == "POST":
            posts.append(route.request.url)
            message = "<p>Your account is temporarily disabled.</p>"
        else:
            message = ""
        await route.fulfill(
            content_type="text/html",
            body=(
                "<form method='post' action='/login'>"
                "<input name='Email'><input name='Password' type='password'>"
                "<input type='submit' value='Log in'></form>" + message
            ),
        )

    await page.route("**/login", _locked_login)

    report = await probes.check_login_rate_limiting(page, attempts=5)

    assert report.clean
    assert len(posts) == 1


@pytest.mark.asyncio
@pytest.mark.security
@pytest.mark.parametrize("payload", XSS_PAYLOADS + SQL_INJECTION_PAYLOADS)
async def test_mock_search_handles_hostile_input(page, payload):
    await page.goto("/")

    report = await probes.check_input_sanitized(page, "#small-searchterms", payload)

    assert report.clean
    assert "/search?" in page.url


async def _echo_query(route):
    query = parse_qs(urlparse(route.request.url).query).get("q", [""])[0]
    await route.fulfill(
        content_type="text/html",
        body=f"<form action='/echo'><input id='q' name='q'></form><div>{query}</div>",
    )


@pytest.mark.asyncio
@pytest.mark.security
async def test_reflected_script_is_reported(page):
    await page.route("**/echo**", _echo_query)
    await page.goto("/echo")

    report = await probes.check_input_sanitized(page, "#q", XSS_PAYLOADS[0])

    assert [finding.kind for finding in report.findings] == ["script_executed"]
    assert "'XSS'" in report.findings[0].detail


@pytest.mark.asyncio
@pytest.mark.security
async def test_database_error_is_reported(page):
    async def _sql_error(route):
        await route.fulfill(
            content_type="text/html",
            body="<form action='/db'><input id='q' name='q'></form>"
            "<p>You have an error in your SQL syntax near ''</p>",
        )

    await page.route("**/db**", _sql_error)
    await page.goto("/db")

    report = await probes.check_input_sanitized(page, "#q", SQL_INJECTION_PAYLOADS[0])

    assert [finding.kind for finding in report.findings] == ["database_error"]
