"""Shared configuration for the conformance checks.

Every value comes from the environment first and from ``.env.defaults`` at the
repository root second (see ``ui_conformance.env_defaults``). The primary
profile targets ``UI_BASE_URL``; setting ``UI_SMOKE_BASE_URL`` adds a second
profile so the same scenarios can be pointed at a mirror or a preview build.
"""
from __future__ import annotations

from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, Iterator, List
from urllib.parse import urljoin

from ui_conformance.env_defaults import setting

DEFAULT_BASE_URL = "https://react.dev/"


def _flag(key: str, fallback: str) -> bool:
    return setting(key, fallback).lower() in {"1", "true", "yes"}


@dataclass
class SiteProfile:
    """Concrete site + workflow inputs for one conformance target."""

    name: str
    base_url: str
    search_query: str
    expected_result: str | None


class ConformanceConfig:
    """Configuration resolved once at import time.

    Timeouts are kept in the unit their consumer expects: Playwright takes
    milliseconds, the anyio polling loops take seconds.
    """

    def __init__(self) -> None:
        self.playwright_headless: bool = _flag("PLAYWRIGHT_HEADLESS", "true")
        self.browser_type: str = setting("PLAYWRIGHT_BROWSER", "chromium")

        self.action_timeout_ms: int = int(setting("UI_ACTION_TIMEOUT_MS", "5000"))
        self.navigation_timeout_ms: int = int(setting("UI_NAVIGATION_TIMEOUT_MS", "30000"))
        self.results_timeout: float = float(setting("UI_RESULTS_TIMEOUT", "5.0"))
        self.results_poll_interval: float = float(setting("UI_RESULTS_POLL_INTERVAL", "0.1"))
        self.idle_wait_ms: int = int(setting("UI_IDLE_WAIT_MS", "500"))

        self.live: bool = _flag("UI_LIVE", "0")
        self.screenshot_dir: str | None = setting("SCREENSHOT_DIR", "") or None

        expected = setting("UI_EXPECTED_RESULT", "Reusing Logic with Custom Hooks")
        primary = SiteProfile(
            name="primary",
            base_url=setting("UI_BASE_URL", DEFAULT_BASE_URL),
            search_query=setting("UI_SEARCH_QUERY", "custom hook"),
            expected_result=expected or None,
        )

        self._profiles: Dict[str, SiteProfile] = {primary.name: primary}

        smoke_base = setting("UI_SMOKE_BASE_URL", "")
        if smoke_base:
            self._profiles["smoke"] = SiteProfile(
                name="smoke",
                base_url=smoke_base,
                search_query=setting("UI_SMOKE_SEARCH_QUERY", primary.search_query),
                expected_result=setting("UI_SMOKE_EXPECTED_RESULT", expected) or None,
            )

        self._active: SiteProfile = primary

    # ---- active profile helpers -------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._active.base_url

    @property
    def search_query(self) -> str:
        return self._active.search_query

    @property
    def expected_result(self) -> str | None:
        return self._active.expected_result

    # ---- profile orchestration --------------------------------------------------
    def profiles(self) -> List[SiteProfile]:
        return list(self._profiles.values())

    @contextmanager
    def use_profile(self, profile: SiteProfile) -> Iterator[SiteProfile]:
        """Temporarily switch the active profile.

        The profile is deep-copied so a scenario that tweaks it (e.g. a
        different query) cannot leak into the next scenario.
        """
        previous = self._active
        self._active = deepcopy(profile)
        try:
            yield self._active
        finally:
            self._active = previous

    # ---- utility helpers --------------------------------------------------------
    def url(self, path: str = "") -> str:
        """Return an absolute URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


# Singleton instance - initialized on first import
settings = ConformanceConfig()
