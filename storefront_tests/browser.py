"""Thin wrapper around Playwright pages plus the harness's waiting primitives."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import anyio
from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout

from storefront_tests.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


async def safe_is_visible(locator: Locator, timeout: float = 3000) -> bool:
    """Wait up to ``timeout`` ms for ``locator`` to attach, then report visibility.

    A locator that never attaches counts as not visible.
    """
    try:
        await locator.first.wait_for(state="attached", timeout=timeout)
    except PlaywrightTimeout:
        return False
    return await locator.first.is_visible()


async def wait_until(
    predicate: Callable[[], Awaitable[T]],
    timeout: float = 5.0,
    interval: float = 0.2,
    message: str = "condition",
) -> T:
    """Poll ``predicate`` until it returns something truthy and return that value."""
    deadline = anyio.current_time() + timeout
    while True:
        result = await predicate()
        if result:
            return result
        if anyio.current_time() >= deadline:
            raise AssertionError(f"Timed out after {timeout}s waiting for {message}")
        await anyio.sleep(interval)


class Browser:
    """Convenience wrapper over a Playwright page for scenario suites."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self.current_url: str | None = None
        self.current_title: str | None = None

    @property
    def page(self) -> Page:
        return self._page

    async def _update_state(self) -> None:
        self.current_url = self._page.url
        self.current_title = await self._page.title()

    async def reset(self) -> Dict[str, Any]:
        """Navigate to about:blank and drop cookies from previous steps."""
        await self._page.context.clear_cookies()
        await self._page.goto("about:blank")
        await self._update_state()
        return {"url": self.current_url, "title": self.current_title}

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int = 30000) -> Dict[str, Any]:
        """Navigate and return url, title and HTTP status.

        "networkidle" can time out on pages with background polling; in that
        case navigation is retried with "domcontentloaded".
        """
        try:
            response = await self._page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeout as exc:
            if wait_until != "networkidle":
                raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
            logger.info("networkidle timed out for %s, retrying with domcontentloaded", url)
            try:
                response = await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout)
            except PlaywrightTimeout as retry_exc:
                raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(retry_exc))
        await self._update_state()
        return {"url": self.current_url, "title": self.current_title, "status": response.status if response else None}

    async def text(self, selector: str) -> str:
        """Get text content of the first matching element."""
        try:
            text = await self._page.text_content(selector, timeout=5000)
            return text or ""
        except Exception as exc:
            raise ToolError(name="text", payload={"selector": selector}, message=str(exc))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Execute JavaScript in the page context."""
        try:
            return await self._page.evaluate(script, arg)
        except Exception as exc:
            raise ToolError(name="evaluate", payload={"script": script}, message=str(exc))

    async def wait_for_text(self, selector: str, expected: str, timeout: float = 5.0, interval: float = 0.25) -> str:
        """Poll until the text of ``selector`` contains ``expected``."""

        async def _contains() -> Optional[str]:
            try:
                content = await self.text(selector)
            except ToolError:
                return None
            return content if expected in content else None

        return await wait_until(_contains, timeout=timeout, interval=interval, message=f"'{expected}' in '{selector}'")

    async def expect_substring(self, selector: str, expected: str) -> str:
        content = await self.text(selector)
        assert expected in content, f"'{expected}' not found in '{content}'"
        return content

    async def screenshot(self, name: str) -> Optional[str]:
        """Save a full-page PNG under SCREENSHOT_DIR; returns None when it is not configured."""
        if not settings.screenshot_dir:
            logger.debug("SCREENSHOT_DIR not set, skipping screenshot %s", name)
            return None
        os.makedirs(settings.screenshot_dir, exist_ok=True)
        path = os.path.join(settings.screenshot_dir, f"{name}.png")
        try:
            await self._page.screenshot(path=path, type="png", full_page=True)
        except Exception as exc:
            raise ToolError(name="screenshot", payload={"name": name}, message=str(exc))
        return path

