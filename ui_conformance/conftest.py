import logging
import sys
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui_conformance.browser import Browser
from ui_conformance.config import SiteProfile, settings
from ui_conformance.playwright_client import PlaywrightClient


def pytest_configure(config):
    config.addinivalue_line("markers", "live: drives the real site (enable with UI_LIVE=1)")
    logging.getLogger("ui_conformance").setLevel(logging.INFO)


@pytest_asyncio.fixture()
async def playwright_client():
    """Create a Playwright client with its own isolated browser context."""
    async with PlaywrightClient(headless=settings.playwright_headless) as client:
        yield client


@pytest_asyncio.fixture()
async def browser(playwright_client):
    """Create a Browser (driver adapter) over the client's page."""
    return Browser(playwright_client.page)


def _profile_id(profile: SiteProfile) -> str:
    return profile.name


@pytest.fixture(params=settings.profiles(), ids=_profile_id)
def active_profile(request):
    """Activate each configured site profile for the test run."""
    profile: SiteProfile = request.param
    with settings.use_profile(profile):
        yield profile
