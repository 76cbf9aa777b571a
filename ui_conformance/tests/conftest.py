import pytest
import pytest_asyncio

from ui_conformance.browser import Browser
from ui_conformance.layouts import REACT_DEV
from ui_conformance.mock_site import MockSite
from ui_conformance.playwright_client import PlaywrightClient


@pytest.fixture
def site():
    """A fresh in-memory react.dev lookalike."""
    return MockSite()


@pytest.fixture
def layout():
    return REACT_DEV


@pytest_asyncio.fixture()
async def local_browser():
    """Real headless Chromium for adapter tests against inline HTML.

    Skips when Playwright's browsers are not installed.
    """
    client = PlaywrightClient(browser_type="chromium", headless=True, timeout=2000)
    try:
        await client.connect()
    except Exception as exc:
        await client.close()
        pytest.skip(f"Playwright browser not available - run `playwright install chromium` ({exc})")
    try:
        yield Browser(client.page, timeout_ms=1000)
    finally:
        await client.close()
