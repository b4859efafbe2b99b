import sys
import threading
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storefront_tests.browser import Browser
from storefront_tests.config import UiTargetProfile, settings
from storefront_tests.playwright_client import PlaywrightClient


MARKERS = {
    "live": "talks to the real storefront; skipped unless UI_RUN_LIVE=1",
    "smoke": "critical-path checks",
    "checkout": "end-to-end checkout flows",
    "performance": "page load and resource timing probes",
    "security": "security probes (log only)",
}


def pytest_configure(config):
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")


def pytest_collection_modifyitems(config, items):
    if settings.run_live:
        return
    skip_live = pytest.mark.skip(reason="Live storefront tests disabled (set UI_RUN_LIVE=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ============================================================================
# Mock storefront fixtures
# ============================================================================

class MockStorefrontServer:
    """Serves the mock storefront app from a background thread."""

    def __init__(self, host='127.0.0.1', port=0):
        from storefront_tests.mock_storefront import create_storefront_app

        self.host = host
        self.port = port
        self.app = create_storefront_app()
        self.server = None
        self.thread = None

    def start(self):
        from werkzeug.serving import make_server

        self.server = make_server(self.host, self.port, self.app, threaded=True)
        # Port 0 asks the OS for a free port.
        self.port = self.server.server_port
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()

    def stop(self):
        if self.server:
            self.server.shutdown()
            if self.thread:
                self.thread.join(timeout=5)

    @property
    def url(self):
        return f"http://{self.host}:{self.port}"


@pytest.fixture(scope='session')
def mock_storefront_server():
    """A running mock storefront shared by the whole test session."""
    server = MockStorefrontServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture()
def mock_storefront(mock_storefront_server):
    """The mock storefront with fresh state and the configured registered customer seeded."""
    from storefront_tests.mock_storefront import reset_mock_state, seed_customer

    reset_mock_state()
    seed_customer(settings.registered_email, settings.registered_password)
    with settings.use_base_url(mock_storefront_server.url):
        yield mock_storefront_server
    reset_mock_state()


# ============================================================================
# Playwright fixtures
# ============================================================================

async def _launch_client(base_url: str) -> PlaywrightClient:
    client = PlaywrightClient(headless=settings.playwright_headless, base_url=base_url)
    try:
        await client.connect()
    except Exception as exc:
        pytest.skip(f"Playwright browser not available: {exc}")
    return client


@pytest_asyncio.fixture()
async def playwright_client(mock_storefront):
    """A Playwright client whose contexts point at the mock storefront."""
    client = await _launch_client(mock_storefront.url)
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture()
async def page(playwright_client):
    """Default page of the mock-storefront client."""
    return playwright_client.page


@pytest_asyncio.fixture()
async def browser(playwright_client):
    """Create a Browser instance with the Playwright page."""
    browser = Browser(playwright_client.page)
    await browser.reset()
    return browser


@pytest_asyncio.fixture()
async def live_client():
    """A Playwright client pointed at the configured (real) storefront."""
    client = await _launch_client(settings.base_url)
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture()
async def live_page(live_client):
    return live_client.page


# ============================================================================
# Parallel Session Manager fixtures
# ============================================================================

@pytest_asyncio.fixture()
async def session_manager(playwright_client):
    """Create a parallel session manager for concurrent-cart tests.

    Provides isolated browser contexts, one per shopper.
    All sessions are automatically cleaned up after the test.

    Usage:
        async def test_two_carts(session_manager):
            first = await session_manager.guest_session()
            second = await session_manager.guest_session()
            # Each session has its own cart
    """
    from storefront_tests.parallel_session_manager import ParallelSessionManager

    async with ParallelSessionManager(
        browser=playwright_client.browser,
        base_url=playwright_client.base_url,
        timeout=settings.default_timeout_ms,
    ) as manager:
        yield manager


def _profile_id(profile: UiTargetProfile) -> str:
    return profile.name


@pytest.fixture(params=settings.profiles(), ids=_profile_id)
def active_profile(request):
    """Activate each configured UI target profile for the test run."""
    profile: UiTargetProfile = request.param
    with settings.use_profile(profile):
        yield profile
