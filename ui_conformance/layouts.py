"""Page layout knowledge for the sites under test.

Everything here is data: which elements the checks look for and how many Tab
presses separate them. The counts are a property of the page (skip links,
decorative links between the targets) and are not inferred at run time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ui_conformance.focus_order import FocusTarget, TraversalStep
from ui_conformance.locators import ByCss, ByRole, Scoped, SelectorSpec
from ui_conformance.presence import FOOTER, HEADER, Landmark


@dataclass(frozen=True)
class SearchLayout:
    """Selectors for the search overlay and its favorites list.

    With ``results`` set to None the query phase falls back to a fixed idle
    wait instead of polling for hits.
    """

    trigger: SelectorSpec
    query_input: SelectorSpec
    results: Optional[SelectorSpec]
    top_result_label: SelectorSpec
    hit: str
    save_control: SelectorSpec
    favorites_list: SelectorSpec
    favorite_entry: SelectorSpec
    confirm_key: str = "Enter"
    close_key: str = "Escape"
    result_role: str = "link"

    def saved_hit(self, identity: str) -> SelectorSpec:
        """The save control inside the hit showing ``identity``."""
        return Scoped(ByCss(self.hit, has_text=identity, first=True), self.save_control)

    def favorite(self) -> SelectorSpec:
        return Scoped(self.favorites_list, self.favorite_entry)

    def result_label(self, identity: str) -> SelectorSpec:
        return ByRole(self.result_role, name=identity)


@dataclass(frozen=True)
class SiteLayout:
    name: str
    landmarks: Tuple[Landmark, ...]
    theme_toggle: SelectorSpec
    focus_order: Tuple[TraversalStep, ...]
    search: SearchLayout


def _nav_step(ordinal: int, name: str, selector: SelectorSpec, presses: int = 1) -> TraversalStep:
    return TraversalStep(FocusTarget(name, selector, ordinal), repeat_count=presses)


_NAVIGATION = ByRole("navigation")

REACT_DEV = SiteLayout(
    name="react.dev",
    landmarks=(HEADER, FOOTER),
    theme_toggle=ByRole("button", name="Use Dark Mode"),
    focus_order=(
        # The skip link takes the first Tab.
        _nav_step(0, "React logo", ByRole("link", name="React", exact=True), presses=2),
        _nav_step(1, "Version link", ByRole("link", name="v19")),
        # Search trigger sits between the version link and Learn.
        _nav_step(2, "Learn", ByRole("link", name="Learn", exact=True), presses=2),
        _nav_step(3, "Reference", ByRole("link", name="Reference", exact=True)),
        _nav_step(4, "Community", Scoped(_NAVIGATION, ByRole("link", name="Community"))),
        _nav_step(5, "Blog", Scoped(_NAVIGATION, ByRole("link", name="Blog"))),
        _nav_step(6, "Theme toggle", ByRole("button", name="Use Dark Mode")),
        _nav_step(7, "Translations", ByRole("link", name="Translations")),
        _nav_step(8, "GitHub", ByRole("link", name="Open on GitHub")),
    ),
    search=SearchLayout(
        trigger=ByRole("button", name="Search Ctrl K"),
        query_input=ByRole("searchbox", name="Search"),
        results=ByCss(".DocSearch-Hit"),
        top_result_label=ByCss(".DocSearch-Hit-title", first=True),
        hit=".DocSearch-Hit",
        save_control=ByRole("button", name="Save this search"),
        favorites_list=ByRole("listbox", name="Search"),
        favorite_entry=ByRole("link", first=True),
    ),
)
