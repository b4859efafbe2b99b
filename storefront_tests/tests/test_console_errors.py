"""
Test for browser console errors across storefront pages.
"""
import re

import pytest
from playwright.async_api import expect

pytestmark = [pytest.mark.asyncio, pytest.mark.smoke]

STOREFRONT_PAGES = [
    "/",
    "/books",
    "/books?orderby=10",
    "/search?q=book",
    "/health",
    "/25-virtual-gift-card",
    "/cart",
    "/wishlist",
    "/login",
    "/register",
    "/passwordrecovery",
]


@pytest.mark.parametrize("path", STOREFRONT_PAGES)
async def test_pages_for_console_errors(page, path: str):
    console_errors = []
    page.on("console", lambda msg: console_errors.append(msg.text) if msg.type == "error" else None)

    response = await page.goto(path)
    await expect(page).to_have_title(re.compile(r"^Demo Web Shop"))

    assert response is not None and response.ok
    assert not console_errors, f"Console errors found on {path}: {console_errors}"


async def test_unknown_page_is_not_found(page):
    response = await page.goto("/no-such-product")
    assert response.status == 404
    await expect(page.locator("h1")).to_have_text("Page not found")
