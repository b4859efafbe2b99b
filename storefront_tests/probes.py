"""Performance and security probes.

The harness cannot assert the security posture or speed of a store it does not
own, so probes measure and log. Suites decide which numbers are fatal.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence
from urllib.parse import urlparse

from playwright.async_api import Page, Response

logger = logging.getLogger(__name__)

# Milliseconds.
PERFORMANCE_THRESHOLDS: Dict[str, int] = {
    "homepage": 3000,
    "product_page": 2000,
    "search_results": 1000,
    "checkout": 6000,
}

_NAVIGATION_TIMING_JS = """
() => {
    const nav = performance.getEntriesByType('navigation')[0];
    if (!nav) { return null; }
    return {
        domContentLoaded: nav.domContentLoadedEventEnd - nav.startTime,
        loadComplete: nav.loadEventEnd - nav.startTime,
        firstByte: nav.responseStart - nav.startTime,
    };
}
"""

_RESOURCE_TIMING_JS = """
() => performance.getEntriesByType('resource').map(r => ({
    type: r.initiatorType || 'other',
    name: r.name,
    duration: r.duration,
    size: r.transferSize || 0,
}))
"""

_CARD_NUMBER_RE = re.compile(r"\b(?:4\d{15}|5[1-5]\d{14}|3[47]\d{13})\b")
_CVV_RE = re.compile(r"(?:cvv|cvc|card\s*code)[\"'\s:=]+\d{3,4}\b", re.I)
_RATE_LIMIT_RE = re.compile(r"too many attempts|rate limit|try again later", re.I)
_LOCKOUT_RE = re.compile(r"account.*locked|temporarily.*disabled", re.I)
_DATABASE_ERROR_RE = re.compile(r"sql syntax|mysql|sqlite|ora-\d{5}|odbc|unclosed quotation|database error", re.I)

# Header (lower case) -> warning when it is missing.
SECURITY_HEADERS: Dict[str, str] = {
    "x-frame-options": "Missing X-Frame-Options header - clickjacking vulnerability",
    "x-content-type-options": "Missing X-Content-Type-Options header - MIME type sniffing vulnerability",
    "x-xss-protection": "Missing X-XSS-Protection header",
    "content-security-policy": "Missing Content-Security-Policy header - XSS protection",
}


@dataclass
class PageLoadMetrics:
    url: str
    total_load_time: float
    dom_content_loaded: float = 0.0
    load_complete: float = 0.0
    first_byte: float = 0.0


@dataclass
class ResourceTiming:
    type: str
    name: str
    duration: float
    size: int


@dataclass
class SecurityFinding:
    kind: str
    detail: str


@dataclass
class SecurityReport:
    findings: List[SecurityFinding] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.findings

    def add(self, kind: str, detail: str) -> None:
        logger.warning("%s: %s", kind, detail)
        self.findings.append(SecurityFinding(kind=kind, detail=detail))


async def measure_page_load(page: Page, url: str) -> PageLoadMetrics:
    """Navigate to ``url`` and collect wall-clock and Navigation Timing numbers (ms)."""
    started = time.perf_counter()
    await page.goto(url)
    elapsed = (time.perf_counter() - started) * 1000

    timing = await page.evaluate(_NAVIGATION_TIMING_JS) or {}
    metrics = PageLoadMetrics(
        url=url,
        total_load_time=elapsed,
        dom_content_loaded=float(timing.get("domContentLoaded", 0.0)),
        load_complete=float(timing.get("loadComplete", 0.0)),
        first_byte=float(timing.get("firstByte", 0.0)),
    )
    logger.info("Loaded %s in %.0f ms (DOMContentLoaded %.0f ms)", url, elapsed, metrics.dom_content_loaded)
    return metrics


async def measure_resource_load_times(page: Page) -> Dict[str, List[ResourceTiming]]:
    """Resource Timing entries of the current page grouped by initiator type."""
    grouped: Dict[str, List[ResourceTiming]] = {}
    for entry in await page.evaluate(_RESOURCE_TIMING_JS):
        timing = ResourceTiming(
            type=entry["type"],
            name=entry["name"],
            duration=float(entry["duration"]),
            size=int(entry["size"]),
        )
        grouped.setdefault(timing.type, []).append(timing)
    return grouped


def exceeds_threshold(kind: str, elapsed_ms: float) -> bool:
    """True when ``elapsed_ms`` is over the budget for ``kind``; logs a warning if so."""
    limit = PERFORMANCE_THRESHOLDS[kind]
    if elapsed_ms > limit:
        logger.warning("%s took %.0f ms (threshold %d ms)", kind, elapsed_ms, limit)
        return True
    return False


def scan_for_sensitive_data(html: str, report: SecurityReport | None = None) -> SecurityReport:
    """Look for unmasked card numbers and CVV values in page source."""
    report = report or SecurityReport()
    for match in _CARD_NUMBER_RE.finditer(html):
        report.add("card_number_exposed", f"Unmasked card number ending {match.group()[-4:]} in page source")
    if _CVV_RE.search(html):
        report.add("cvv_exposed", "CVV codes found in page source - PCI DSS violation")
    return report


def warn_if_insecure(url: str, report: SecurityReport | None = None) -> SecurityReport:
    """Record a finding when a payment form is served over plain HTTP."""
    report = report or SecurityReport()
    if urlparse(url).scheme != "https":
        report.add("insecure_transport", f"Payment form not using HTTPS: {url}")
    else:
        logger.info("Payment form uses HTTPS")
    return report


async def audit_payment_page(page: Page) -> SecurityReport:
    """Check the current payment page for transport and data exposure problems."""
    report = warn_if_insecure(page.url)

    card_number = page.locator("#CardNumber")
    if await card_number.count() and await card_number.get_attribute("autocomplete") not in ("off", "cc-number"):
        report.add("card_autocomplete", "Card number field allows browser autocomplete")

    return scan_for_sensitive_data(await page.content(), report)


async def audit_response_headers(response: Response, report: SecurityReport | None = None) -> SecurityReport:
    """Record every hardening header missing from ``response``."""
    report = report or SecurityReport()
    headers = await response.all_headers()
    logger.info("Response headers of %s: %s", response.url, sorted(headers))

    for name, message in SECURITY_HEADERS.items():
        if name not in headers:
            report.add("missing_security_header", message)
    if urlparse(response.url).scheme == "https" and "strict-transport-security" not in headers:
        report.add("missing_security_header", "Missing Strict-Transport-Security header for HTTPS site")
    return report


async def audit_session_cookies(response: Response, report: SecurityReport | None = None) -> SecurityReport:
    """Check the attributes of every cookie ``response`` sets."""
    report = report or SecurityReport()
    https = urlparse(response.url).scheme == "https"

    for set_cookie in await response.header_values("set-cookie"):
        name, _, attributes = set_cookie.partition(";")
        name = name.split("=", 1)[0].strip()
        flags = {part.split("=", 1)[0].strip().lower() for part in attributes.split(";")}
        if "httponly" not in flags:
            report.add("cookie_httponly_missing", f"Cookie {name} missing HttpOnly attribute")
        if https and "secure" not in flags:
            report.add("cookie_secure_missing", f"Cookie {name} missing Secure attribute for HTTPS")
        if "samesite" not in flags:
            report.add("cookie_samesite_missing", f"Cookie {name} missing SameSite attribute")
    return report


def shows_throttling(attempt_times: Sequence[float]) -> bool:
    """True when the last two attempts took 1.5 times as long as the first two."""
    if len(attempt_times) < 3:
        return False
    first = sum(attempt_times[:2]) / 2
    last = sum(attempt_times[-2:]) / 2
    return last > first * 1.5


async def check_login_rate_limiting(
    page: Page,
    email: str = "bruteforce@test.com",
    attempts: int = 5,
    report: SecurityReport | None = None,
) -> SecurityReport:
    """Submit wrong passwords for ``email`` and look for CAPTCHA, rate limiting or lockout."""
    report = report or SecurityReport()
    await page.goto("/login")

    email_field = page.locator('input[name="Email"]')
    password_field = page.locator('input[name="Password"]')
    if not await email_field.is_visible():
        logger.info("No login form at %s", page.url)
        return report

    defenses = {
        "CAPTCHA": page.locator('.captcha, [data-captcha], img[src*="captcha"]'),
        "Rate limiting": page.get_by_text(_RATE_LIMIT_RE),
        "Account lockout": page.get_by_text(_LOCKOUT_RE),
    }
    attempt_times: List[float] = []
    for attempt in range(1, attempts + 1):
        await email_field.fill(email)
        await password_field.fill(f"wrongpassword{attempt}")

        started = time.perf_counter()
        await page.locator("input[value='Log in']").click()
        await page.wait_for_load_state("networkidle")
        attempt_times.append((time.perf_counter() - started) * 1000)

        for defense, locator in defenses.items():
            if await locator.first.is_visible():
                logger.info("%s detected after attempt %d", defense, attempt)
                return report

    if shows_throttling(attempt_times):
        logger.info("Response time increase suggests rate limiting")
    else:
        report.add("no_brute_force_protection", "No obvious brute force protection detected")
    return report


async def check_input_sanitized(
    page: Page,
    selector: str,
    payload: str,
    report: SecurityReport | None = None,
) -> SecurityReport:
    """Submit ``payload`` through the field at ``selector`` and watch the response page.

    Script payloads that execute (any dialog opens) and database error text in
    the response are recorded.
    """
    report = report or SecurityReport()
    dialogs: List[str] = []

    async def _on_dialog(dialog) -> None:
        dialogs.append(dialog.message)
        await dialog.dismiss()

    page.on("dialog", _on_dialog)
    try:
        field = page.locator(selector)
        await field.fill(payload)
        await field.press("Enter")
        await page.wait_for_load_state("networkidle")
        html = await page.content()
    finally:
        page.remove_listener("dialog", _on_dialog)

    if dialogs:
        report.add("script_executed", f"Payload {payload!r} executed in the page (dialog {dialogs[0]!r})")
    if _DATABASE_ERROR_RE.search(html):
        report.add("database_error", f"Database error shown for payload {payload!r}")
    return report
