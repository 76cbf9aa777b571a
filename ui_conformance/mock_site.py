"""In-memory stand-in for the site under test.

``MockSite`` implements the ``Driver`` protocol without a browser. It renders a
react.dev-shaped page from a handful of state fields (theme, search overlay,
query, recent searches, favorites, current article) and re-renders on every
lookup, so handles behave like Playwright locators: they are resolved lazily
and see the page as it is at the moment of use.

Only the selector shapes the layouts use are understood: tag names, ``.class``
tokens, ``[class*="..."]`` substrings and comma-separated lists of those.

Knobs on the constructor break the page in specific ways so the checks'
failure paths can be exercised (slow search, hidden save control, favorites
that do not survive closing the overlay, missing landmarks).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import anyio

from ui_conformance.errors import ToolError
from ui_conformance.locators import ByCss, ByRole, Scoped, SelectorSpec

SEARCH_INDEX: Dict[str, Tuple[str, ...]] = {
    "custom hook": (
        "Reusing Logic with Custom Hooks",
        "Rules of Hooks",
        "useDebugValue",
    ),
    "effect": (
        "Synchronizing with Effects",
        "You Might Not Need an Effect",
        "useEffect",
    ),
}

NAV_LINKS = ("Learn", "Reference", "Community", "Blog")


@dataclass
class MockElement:
    key: str
    tag: str = "div"
    role: Optional[str] = None
    name: str = ""
    classes: str = ""
    text: str = ""
    parent: Optional[str] = None
    focusable: bool = False
    visible: bool = True
    on_click: Optional[Callable[[], None]] = None


@dataclass(frozen=True)
class MockHandle:
    """Lazy reference to whatever ``spec`` matches when it is used."""

    spec: SelectorSpec

    def __str__(self) -> str:
        return str(self.spec)


def _css_matches(pattern: str, element: MockElement) -> bool:
    tokens = element.classes.split()
    for part in (p.strip() for p in pattern.split(",")):
        contains = re.fullmatch(r'\[class\*="([^"]+)"\]', part)
        if contains and contains.group(1) in element.classes:
            return True
        if part.startswith(".") and part[1:] in tokens:
            return True
        if part == element.tag:
            return True
    return False


def _name_matches(expected: Optional[str], actual: str, exact: bool) -> bool:
    if expected is None:
        return True
    if exact:
        return expected == actual
    return expected.lower() in actual.lower()


class MockSite:
    """A scripted react.dev lookalike implementing ``Driver``."""

    def __init__(
        self,
        search_index: Optional[Dict[str, Sequence[str]]] = None,
        results_delay: float = 0.0,
        skip_link: bool = True,
        trailing_links: Sequence[str] = ("Quick Start", "Installation"),
        semantic_landmarks: bool = True,
        landmark_classes: bool = True,
        save_control_visible: bool = True,
        favorites_persist: bool = True,
        dark_on_load: bool = False,
    ) -> None:
        self.search_index = {k: tuple(v) for k, v in (search_index or SEARCH_INDEX).items()}
        self.results_delay = results_delay
        self.skip_link = skip_link
        self.trailing_links = tuple(trailing_links)
        self.semantic_landmarks = semantic_landmarks
        self.landmark_classes = landmark_classes
        self.save_control_visible = save_control_visible
        self.favorites_persist = favorites_persist

        self.dark = dark_on_load
        self.overlay_open = False
        self.query = ""
        self.typed_at: Optional[float] = None
        self.recents: List[str] = []
        self.favorites: List[str] = []
        self.current_article: Optional[str] = None
        self.focused: Optional[str] = None
        self.focus_left_page = False
        self.actions: List[Tuple[str, str]] = []

    # ---- rendering ---------------------------------------------------------------
    def _results(self) -> Tuple[str, ...]:
        if not self.query or self.typed_at is None:
            return ()
        if anyio.current_time() - self.typed_at < self.results_delay:
            return ()
        return self.search_index.get(self.query.strip().lower(), ())

    def render(self) -> List[MockElement]:
        els: List[MockElement] = [MockElement("body", tag="body", classes="dark" if self.dark else "")]

        def add(element: MockElement) -> MockElement:
            els.append(element)
            return element

        header_classes = "site-header" if self.landmark_classes else ""
        add(MockElement("header", tag="header" if self.semantic_landmarks else "div", classes=header_classes, parent="body"))
        if self.skip_link:
            add(MockElement("skip", tag="a", role="link", name="Skip to main content", parent="header", focusable=True))
        add(MockElement("logo", tag="a", role="link", name="React", parent="header", focusable=True))
        add(MockElement("version", tag="a", role="link", name="v19.1", parent="header", focusable=True))
        add(MockElement("search-trigger", tag="button", role="button", name="Search Ctrl K", parent="header",
                        focusable=True, on_click=self._open_overlay))

        nav_classes = "top-nav" if self.landmark_classes else ""
        add(MockElement("nav", tag="nav", role="navigation", classes=nav_classes, parent="header"))
        for label in NAV_LINKS:
            add(MockElement(f"nav-{label.lower()}", tag="a", role="link", name=label, parent="nav", focusable=True))

        theme_label = "Use Light Mode" if self.dark else "Use Dark Mode"
        add(MockElement("theme-toggle", tag="button", role="button", name=theme_label, parent="header",
                        focusable=True, on_click=self._toggle_theme))
        add(MockElement("translations", tag="a", role="link", name="Translations", parent="header", focusable=True))
        add(MockElement("github", tag="a", role="link", name="Open on GitHub", parent="header", focusable=True))

        add(MockElement("main", tag="main", parent="body"))
        if self.current_article:
            article = self.current_article
            add(MockElement("article-link", tag="a", role="link", name=article, parent="main", focusable=True))
            add(MockElement("article-title", tag="h1", role="heading", name=article, text=article, parent="main"))
        for index, label in enumerate(self.trailing_links):
            add(MockElement(f"content-{index}", tag="a", role="link", name=label, parent="main", focusable=True))

        footer_classes = "site-footer" if self.landmark_classes else ""
        add(MockElement("footer", tag="footer" if self.semantic_landmarks else "div", classes=footer_classes, parent="body"))

        if self.overlay_open:
            self._render_overlay(add)
        return els

    def _render_overlay(self, add: Callable[[MockElement], MockElement]) -> None:
        add(MockElement("modal", classes="DocSearch-Modal", parent="body"))
        add(MockElement("searchbox", tag="input", role="searchbox", name="Search", parent="modal", focusable=True))

        if self.query:
            add(MockElement("results", tag="ul", role="listbox", name="Search", parent="modal"))
            for index, title in enumerate(self._results()):
                self._render_hit(add, f"result-{index}", title, "results", save=False)
            return

        if self.favorites:
            add(MockElement("favorites", tag="ul", role="listbox", name="Search", parent="modal"))
            for index, title in enumerate(self.favorites):
                self._render_hit(add, f"favorite-{index}", title, "favorites", save=False)
        if self.recents:
            add(MockElement("recents", tag="ul", role="listbox", name="Recent", parent="modal"))
            for index, title in enumerate(self.recents):
                self._render_hit(add, f"recent-{index}", title, "recents", save=True)

    def _render_hit(self, add, key: str, title: str, parent: str, save: bool) -> None:
        add(MockElement(key, tag="li", role="option", name=title, classes="DocSearch-Hit", text=title, parent=parent))
        add(MockElement(f"{key}-link", tag="a", role="link", name=title, text=title, parent=key,
                        focusable=True, on_click=lambda: self._open_article(title)))
        add(MockElement(f"{key}-title", tag="span", classes="DocSearch-Hit-title", text=title, parent=f"{key}-link"))
        if save:
            add(MockElement(f"{key}-save", tag="button", role="button", name="Save this search", parent=f"{key}-link",
                            focusable=True, visible=self.save_control_visible,
                            on_click=lambda: self._save_favorite(title)))

    # ---- page behavior -----------------------------------------------------------
    def _open_overlay(self) -> None:
        self.overlay_open = True
        self.query = ""
        self.typed_at = None
        self.focused = "searchbox"

    def _close_overlay(self) -> None:
        self.overlay_open = False
        self.query = ""
        self.typed_at = None
        if not self.favorites_persist:
            self.favorites.clear()

    def _toggle_theme(self) -> None:
        self.dark = not self.dark

    def _open_article(self, title: str) -> None:
        self.current_article = title
        if title not in self.favorites and title in self.recents:
            self.recents.remove(title)
        if title not in self.favorites:
            self.recents.insert(0, title)
        self._close_overlay()
        self.focused = None

    def _save_favorite(self, title: str) -> None:
        if title in self.recents:
            self.recents.remove(title)
        if title not in self.favorites:
            self.favorites.insert(0, title)

    # ---- resolution --------------------------------------------------------------
    def _is_within(self, element: MockElement, ancestor: str, by_key: Dict[str, MockElement]) -> bool:
        parent = element.parent
        while parent is not None:
            if parent == ancestor:
                return True
            parent = by_key[parent].parent if parent in by_key else None
        return False

    def _match(self, spec: SelectorSpec, scope: Optional[List[MockElement]] = None) -> List[MockElement]:
        elements = self.render()
        by_key = {el.key: el for el in elements}
        return self._match_in(spec, elements, by_key, scope)

    def _match_in(self, spec, elements, by_key, scope) -> List[MockElement]:
        if isinstance(spec, Scoped):
            parents = self._match_in(spec.parent, elements, by_key, scope)
            return self._match_in(spec.child, elements, by_key, parents)

        candidates = elements
        if scope is not None:
            candidates = [el for el in elements if any(self._is_within(el, p.key, by_key) for p in scope)]

        if isinstance(spec, ByRole):
            found = [el for el in candidates if el.role == spec.role and _name_matches(spec.name, el.name, spec.exact)]
        elif isinstance(spec, ByCss):
            found = [el for el in candidates if _css_matches(spec.pattern, el)]
            if spec.has_text is not None:
                found = [el for el in found if spec.has_text.lower() in el.text.lower()]
        else:
            raise ToolError(name="locate", payload={"spec": repr(spec)}, message="unsupported selector spec")
        return found[:1] if spec.first else found

    def _single(self, name: str, handle: MockHandle) -> MockElement:
        found = self._match(handle.spec)
        if len(found) != 1:
            raise ToolError(
                name=name,
                payload={"spec": str(handle.spec)},
                message=f"expected exactly one element, found {len(found)}",
            )
        return found[0]

    # ---- Driver protocol ---------------------------------------------------------
    async def locate(self, spec: SelectorSpec) -> MockHandle:
        return MockHandle(spec)

    async def count(self, handle: MockHandle) -> int:
        return len(self._match(handle.spec))

    async def click(self, handle: MockHandle) -> None:
        element = self._single("click", handle)
        if not element.visible:
            raise ToolError(name="click", payload={"spec": str(handle.spec)}, message="element is not visible")
        self.actions.append(("click", element.key))
        if element.focusable:
            self.focused = element.key
        if element.on_click:
            element.on_click()

    async def type(self, handle: MockHandle, text: str) -> None:
        element = self._single("type", handle)
        if element.role != "searchbox":
            raise ToolError(name="type", payload={"spec": str(handle.spec)}, message="element is not editable")
        self.actions.append(("type", text))
        self.focused = element.key
        self.query += text
        self.typed_at = anyio.current_time()

    async def press_key(self, key: str) -> None:
        self.actions.append(("press", key))
        if key == "Tab":
            self._tab()
        elif key == "Escape" and self.overlay_open:
            self._close_overlay()
            self.focused = None
        elif key == "Enter" and self.overlay_open:
            results = self._results()
            if results:
                self._open_article(results[0])

    def _tab(self) -> None:
        order = [el.key for el in self.render() if el.focusable and el.visible]
        if self.focus_left_page:
            return
        if self.focused not in order:
            position = 0
        else:
            position = order.index(self.focused) + 1
        if position >= len(order):
            self.focused = None
            self.focus_left_page = True
        else:
            self.focused = order[position]

    async def is_visible(self, handle: MockHandle) -> bool:
        found = self._match(handle.spec)
        if len(found) > 1:
            raise ToolError(name="is_visible", payload={"spec": str(handle.spec)},
                            message=f"expected exactly one element, found {len(found)}")
        return bool(found) and found[0].visible

    async def class_name(self, handle: MockHandle) -> str:
        return self._single("class_name", handle).classes

    async def has_class(self, handle: MockHandle, pattern: str) -> bool:
        return re.search(pattern, await self.class_name(handle)) is not None

    async def is_focused(self, handle: MockHandle) -> bool:
        found = self._match(handle.spec)
        return len(found) == 1 and found[0].key == self.focused

    async def describe_focused(self) -> str | None:
        if self.focused is None:
            return None
        element = next((el for el in self.render() if el.key == self.focused), None)
        if element is None:
            return None
        return f"<{element.tag}> {(element.name or element.text)!r}"

    async def text(self, handle: MockHandle) -> str:
        element = self._single("text", handle)
        return element.text or element.name

    async def wait_idle(self, duration_ms: int) -> None:
        self.actions.append(("wait_idle", str(duration_ms)))
        await anyio.sleep(duration_ms / 1000)

    # ---- test helpers ------------------------------------------------------------
    def clicks(self) -> List[str]:
        return [detail for action, detail in self.actions if action == "click"]

    def presses(self, key: str | None = None) -> int:
        return sum(1 for action, detail in self.actions if action == "press" and (key is None or detail == key))

    def snapshot(self) -> Dict[str, Any]:
        return {
            "dark": self.dark,
            "overlay_open": self.overlay_open,
            "favorites": list(self.favorites),
            "recents": list(self.recents),
            "current_article": self.current_article,
        }
