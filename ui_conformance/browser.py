"""Playwright-backed driver adapter plus the capability protocol the checks use."""
from __future__ import annotations

import logging
import os
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Protocol

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout

from ui_conformance.config import settings
from ui_conformance.errors import DriverTimeout, ToolError
from ui_conformance.locators import ByCss, ByRole, Scoped, SelectorSpec

logger = logging.getLogger(__name__)

# Describes document.activeElement; null when focus sits on <body>/<html> or
# has left the document entirely.
_FOCUSED_ELEMENT_JS = """
() => {
    const el = document.activeElement;
    if (!el || el === document.body || el === document.documentElement) return null;
    const label = (el.getAttribute('aria-label') || el.innerText || el.value || '').trim();
    return {tag: el.tagName.toLowerCase(), id: el.id || null, label: label.slice(0, 60)};
}
"""


class Driver(Protocol):
    """Capabilities the conformance checks are written against.

    ``Browser`` implements it on top of Playwright; ``MockSite`` implements it
    in memory for browser-free tests. Handles are opaque to the checks.
    """

    async def locate(self, spec: SelectorSpec) -> Any: ...

    async def count(self, handle: Any) -> int: ...

    async def click(self, handle: Any) -> None: ...

    async def type(self, handle: Any, text: str) -> None: ...

    async def press_key(self, key: str) -> None: ...

    async def is_visible(self, handle: Any) -> bool: ...

    async def has_class(self, handle: Any, pattern: str) -> bool: ...

    async def class_name(self, handle: Any) -> str: ...

    async def is_focused(self, handle: Any) -> bool: ...

    async def describe_focused(self) -> str | None: ...

    async def text(self, handle: Any) -> str: ...

    async def wait_idle(self, duration_ms: int) -> None: ...


def describe_element(info: Dict[str, Any] | None) -> str | None:
    """Format the ``_FOCUSED_ELEMENT_JS`` payload for error messages."""
    if not info:
        return None
    text = f"<{info['tag']}"
    if info.get("id"):
        text += f" id={info['id']!r}"
    text += ">"
    if info.get("label"):
        text += f" {info['label']!r}"
    return text


class Browser:
    """Convenience wrapper over Playwright implementing ``Driver``."""

    def __init__(self, page: Page, timeout_ms: int | None = None) -> None:
        self._page = page
        self.timeout_ms = settings.action_timeout_ms if timeout_ms is None else timeout_ms

    @property
    def page(self) -> Page:
        return self._page

    @contextmanager
    def _translate(self, name: str, **payload: Any) -> Iterator[None]:
        """Turn Playwright failures into ToolError / DriverTimeout."""
        try:
            yield
        except PlaywrightTimeout as exc:
            raise DriverTimeout(name=name, payload=payload, message=str(exc), timeout_s=self.timeout_ms / 1000) from exc
        except ToolError:
            raise
        except Exception as exc:
            raise ToolError(name=name, payload=payload, message=str(exc)) from exc

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int | None = None) -> Dict[str, Any]:
        """Navigate to URL and wait for the requested load state.

        Note: "networkidle" can time out on pages with long-lived connections;
              in that case navigation is retried with "domcontentloaded".
        """
        timeout = settings.navigation_timeout_ms if timeout is None else timeout
        try:
            response = await self._page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeout as exc:
            if wait_until != "networkidle":
                raise DriverTimeout(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc), timeout_s=timeout / 1000) from exc
            logger.warning("networkidle timed out for %s, retrying with domcontentloaded", url)
            with self._translate("goto", url=url, wait_until="domcontentloaded"):
                response = await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        except Exception as exc:
            raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc)) from exc
        return {"url": self._page.url, "status": response.status if response else None}

    # ---- locating ----------------------------------------------------------------
    def _resolve(self, spec: SelectorSpec, root: Page | Locator | None = None) -> Locator:
        root = self._page if root is None else root
        if isinstance(spec, Scoped):
            return self._resolve(spec.child, self._resolve(spec.parent, root))
        if isinstance(spec, ByRole):
            if spec.name is None:
                locator = root.get_by_role(spec.role)
            else:
                locator = root.get_by_role(spec.role, name=spec.name, exact=spec.exact)
        elif isinstance(spec, ByCss):
            locator = root.locator(spec.pattern, has_text=spec.has_text)
        else:
            raise ToolError(name="locate", payload={"spec": repr(spec)}, message="unsupported selector spec")
        return locator.first if spec.first else locator

    async def locate(self, spec: SelectorSpec) -> Locator:
        return self._resolve(spec)

    async def count(self, handle: Locator) -> int:
        with self._translate("count", handle=str(handle)):
            return await handle.count()

    # ---- actions -----------------------------------------------------------------
    async def click(self, handle: Locator) -> None:
        with self._translate("click", handle=str(handle)):
            await handle.click(timeout=self.timeout_ms)

    async def type(self, handle: Locator, text: str) -> None:
        """Focus the element and type like a user would (key by key)."""
        with self._translate("type", handle=str(handle), text=text):
            await handle.focus(timeout=self.timeout_ms)
            await self._page.keyboard.type(text)

    async def press_key(self, key: str) -> None:
        with self._translate("press_key", key=key):
            await self._page.keyboard.press(key)

    async def wait_idle(self, duration_ms: int) -> None:
        await self._page.wait_for_timeout(duration_ms)

    # ---- predicates --------------------------------------------------------------
    async def is_visible(self, handle: Locator) -> bool:
        """Wait up to the action timeout for the element to become visible."""
        try:
            await handle.wait_for(state="visible", timeout=self.timeout_ms)
        except PlaywrightTimeout:
            return False
        except Exception as exc:
            raise ToolError(name="is_visible", payload={"handle": str(handle)}, message=str(exc)) from exc
        return True

    async def class_name(self, handle: Locator) -> str:
        with self._translate("class_name", handle=str(handle)):
            return await handle.get_attribute("class", timeout=self.timeout_ms) or ""

    async def has_class(self, handle: Locator, pattern: str) -> bool:
        return re.search(pattern, await self.class_name(handle)) is not None

    async def is_focused(self, handle: Locator) -> bool:
        with self._translate("is_focused", handle=str(handle)):
            if await handle.count() == 0:
                return False
            return await handle.evaluate("el => el === document.activeElement", timeout=self.timeout_ms)

    async def describe_focused(self) -> str | None:
        with self._translate("describe_focused"):
            return describe_element(await self._page.evaluate(_FOCUSED_ELEMENT_JS))

    async def text(self, handle: Locator) -> str:
        with self._translate("text", handle=str(handle)):
            return (await handle.inner_text(timeout=self.timeout_ms)).strip()

    # ---- diagnostics -------------------------------------------------------------
    async def screenshot(self, name: str) -> str | None:
        """Write a full-page PNG into SCREENSHOT_DIR; no-op when unset."""
        if not settings.screenshot_dir:
            return None
        os.makedirs(settings.screenshot_dir, exist_ok=True)
        path = os.path.join(settings.screenshot_dir, f"{name}.png")
        with self._translate("screenshot", path=path):
            await self._page.screenshot(path=path, full_page=True)
        logger.info("📸 %s", path)
        return path
