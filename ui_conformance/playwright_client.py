"""
In-process Playwright launcher
==============================

Owns the Playwright driver, the browser and one isolated browser context per
client. Every conformance scenario gets its own client so cookies, local
storage (where the site keeps search favorites and the theme preference) and
focus state never cross scenario boundaries.

Usage:
    async with PlaywrightClient() as client:
        await client.page.goto("https://react.dev/")
"""

import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from ui_conformance.config import settings

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """
    Launch a browser and hand out a fresh context + page.

    Example:
        async with PlaywrightClient(headless=False) as client:
            page = client.page
            await page.goto("https://react.dev/")
    """

    def __init__(
        self,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        timeout: Optional[int] = None,
        color_scheme: str = "light",
    ):
        """
        Args:
            browser_type: chromium, firefox or webkit (default from settings)
            headless: Run in headless mode (default from settings)
            timeout: Default action timeout in milliseconds (default from settings)
            color_scheme: Emulated prefers-color-scheme; light keeps theme checks deterministic
        """
        self.browser_type = browser_type or settings.browser_type
        self.headless = settings.playwright_headless if headless is None else headless
        self.timeout = settings.action_timeout_ms if timeout is None else timeout
        self.color_scheme = color_scheme

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
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
        logger.debug("Launched %s (headless=%s)", self.browser_type, self.headless)

        self._context = await self._browser.new_context(color_scheme=self.color_scheme)
        self._context.set_default_timeout(self.timeout)
        self._context.set_default_navigation_timeout(settings.navigation_timeout_ms)
        self._page = await self._context.new_page()

    async def close(self):
        """Close page, context, browser and driver in that order."""
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
    def page(self) -> Page:
        """Get the default page."""
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page
