"""
Parallel session manager.

Gives each shopper an isolated browser context (own cookies, own cart) so
scenarios can drive several carts against the store at the same time.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TypedDict
import logging

from playwright.async_api import Browser, BrowserContext, Page

from storefront_tests import workflows
from storefront_tests.checkout import CheckoutFlavor
from storefront_tests.testdata import UserProfile

logger = logging.getLogger(__name__)


class ViewportSize(TypedDict):
    width: int
    height: int


@dataclass
class SessionHandle:
    """Handle to one isolated shopper session."""
    session_id: str
    context: BrowserContext
    page: Page
    flavor: CheckoutFlavor
    user: Optional[UserProfile] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        email = self.user.email if self.user else None
        return f"SessionHandle(id={self.session_id}, flavor={self.flavor.value}, user={email})"


class ParallelSessionManager:
    """
    Creates and tracks isolated browser contexts.

    Usage:
        async with ParallelSessionManager(browser, base_url) as manager:
            first, second = await manager.guest_session(), await manager.guest_session()
            await asyncio.gather(
                workflows.add_product_to_cart(first.page, "book"),
                workflows.add_product_to_cart(second.page, "laptop"),
            )
    """

    DEFAULT_VIEWPORT: ViewportSize = {'width': 1280, 'height': 720}
    DEFAULT_LOCALE = 'en-US'

    def __init__(
        self,
        browser: Browser,
        base_url: Optional[str] = None,
        viewport: Optional[ViewportSize] = None,
        locale: str = DEFAULT_LOCALE,
        timeout: Optional[int] = None,
    ):
        self.browser = browser
        self.base_url = base_url
        self.viewport: ViewportSize = viewport or self.DEFAULT_VIEWPORT
        self.locale = locale
        self.timeout = timeout
        self.sessions: Dict[str, SessionHandle] = {}
        self._counter = 0

    async def __aenter__(self) -> 'ParallelSessionManager':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()

    async def create_session(
        self,
        flavor: CheckoutFlavor,
        session_id: Optional[str] = None,
        viewport: Optional[ViewportSize] = None,
    ) -> SessionHandle:
        """Open a new context and page; ``session_id`` is generated when omitted."""
        if session_id is None:
            self._counter += 1
            session_id = f"{flavor.value}_{self._counter}"

        if session_id in self.sessions:
            raise ValueError(f"Session {session_id} already exists")

        context = await self.browser.new_context(
            viewport=viewport if viewport is not None else self.viewport,
            locale=self.locale,
            base_url=self.base_url,
        )
        if self.timeout:
            context.set_default_timeout(self.timeout)
        page = await context.new_page()

        handle = SessionHandle(session_id=session_id, context=context, page=page, flavor=flavor)
        self.sessions[session_id] = handle
        logger.debug(f"Created session: {handle}")
        return handle

    async def guest_session(self) -> SessionHandle:
        """A fresh anonymous shopper."""
        return await self.create_session(CheckoutFlavor.GUEST)

    async def registered_session(self, user: UserProfile, login: bool = True) -> SessionHandle:
        """Get or create the session of ``user``, logged in unless ``login`` is False."""
        session_id = f"registered_{user.email}"
        if session_id not in self.sessions:
            handle = await self.create_session(CheckoutFlavor.REGISTERED, session_id)
            handle.user = user
            if login:
                await workflows.login(handle.page, user)
                logger.debug(f"Logged in session: {handle}")
        return self.sessions[session_id]

    async def close_session(self, session_id: str) -> None:
        if session_id in self.sessions:
            handle = self.sessions.pop(session_id)
            await handle.context.close()
            logger.debug(f"Closed session: {handle}")

    async def close_all(self) -> None:
        for session_id in list(self.sessions.keys()):
            await self.close_session(session_id)

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    def list_sessions(self) -> list[str]:
        return list(self.sessions.keys())
