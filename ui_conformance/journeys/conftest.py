"""
Fixtures for the live journeys.

Journeys drive the configured site in a real browser, so they only run when
``UI_LIVE=1`` is set and the site answers over HTTP. Each test gets a fresh
browser context (see ``playwright_client``) loaded on the profile's base URL.
When ``SCREENSHOT_DIR`` is set, a failing journey leaves a full-page PNG there.
"""
import logging

import httpx
import pytest
import pytest_asyncio

from ui_conformance.config import settings
from ui_conformance.errors import ToolError

logger = logging.getLogger(__name__)


def pytest_collection_modifyitems(config, items):
    if settings.live:
        return
    skip_live = pytest.mark.skip(reason="live journey - set UI_LIVE=1 to run against the real site")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report on the item so fixtures can see failures."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def site_reachable():
    """Skip the journeys when the configured site cannot be reached."""
    url = settings.url()
    try:
        response = httpx.get(url, timeout=10.0, follow_redirects=True)
    except httpx.HTTPError as exc:
        pytest.skip(f"{url} is not reachable: {exc}")
    if response.status_code >= 500:
        pytest.skip(f"{url} answered {response.status_code}")
    logger.info("🌐 %s reachable (%s)", url, response.status_code)
    return url


@pytest_asyncio.fixture()
async def page_ready(request, site_reachable, active_profile, browser):
    """Load the active profile's base URL on a fresh page."""
    await browser.goto(settings.url())
    yield browser

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        name = request.node.name.replace("/", "_").replace("[", "-").replace("]", "")
        try:
            await browser.screenshot(f"failure-{name}")
        except ToolError as exc:
            logger.warning("Could not capture failure screenshot: %s", exc)
