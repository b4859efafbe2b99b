"""
In-process Playwright client
============================

Launches a browser directly through Playwright's async Python API. Every
context is created with the storefront's ``base_url`` so workflows can
navigate with relative paths (``await page.goto("/cart")``).

Usage:
    from storefront_tests.playwright_client import PlaywrightClient

    async with PlaywrightClient(base_url="http://127.0.0.1:5556") as client:
        await client.page.goto("/")
        await client.page.fill("#small-searchterms", "book")
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from storefront_tests.config import settings

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """
    Direct Playwright client owning one browser and a default context/page.

    Example:
        async with PlaywrightClient() as client:
            await client.page.goto("/")
    """

    def __init__(
        self,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        timeout: Optional[int] = None,
        base_url: Optional[str] = None,
        storage_state_path: Optional[str] = None,
    ):
        """
        Args:
            browser_type: chromium, firefox or webkit (default: PLAYWRIGHT_BROWSER)
            headless: Run headless (default: PLAYWRIGHT_HEADLESS)
            timeout: Default action timeout in milliseconds (default: UI_DEFAULT_TIMEOUT_MS)
            base_url: Base URL for relative navigation (default: UI_BASE_URL)
            storage_state_path: Optional saved cookies/localStorage to start from
        """
        self.browser_type = browser_type or settings.browser_type
        self.headless = settings.playwright_headless if headless is None else headless
        self.timeout = timeout or settings.default_timeout_ms
        self.base_url = base_url or settings.base_url
        self.storage_state_path = storage_state_path

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self) -> "PlaywrightClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def connect(self) -> None:
        """Launch the browser and open the default context and page."""
        self._playwright = await async_playwright().start()

        if self.browser_type == "firefox":
            launcher = self._playwright.firefox
        elif self.browser_type == "webkit":
            launcher = self._playwright.webkit
        else:
            launcher = self._playwright.chromium
        try:
            self._browser = await launcher.launch(headless=self.headless)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

        storage_state_path = self.storage_state_path
        if storage_state_path and not os.path.exists(storage_state_path):
            logger.warning("storage_state_path does not exist, ignoring: %s", storage_state_path)
            storage_state_path = None

        self._context = await self.new_context(storage_state=storage_state_path)
        self._page = await self._context.new_page()
        logger.debug("Launched %s (headless=%s) against %s", self.browser_type, self.headless, self.base_url)

    async def new_page(self) -> Page:
        """Open another page in the default context (shares cookies with ``page``)."""
        if not self._context:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return await self._context.new_page()

    async def new_context(self, **kwargs) -> BrowserContext:
        """Create an isolated context; ``base_url`` defaults to the client's."""
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        kwargs.setdefault("base_url", self.base_url)
        context = await self._browser.new_context(**kwargs)
        context.set_default_timeout(self.timeout)
        return context

    async def close(self) -> None:
        """Close all pages, contexts and the browser."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("Client not connected")
        return self._context

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page

