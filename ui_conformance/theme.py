"""Theme toggle check: one click must put a dark class on the root container."""
from __future__ import annotations

import re

from ui_conformance.browser import Driver
from ui_conformance.errors import PresenceNotFound, ToggleStateMismatch
from ui_conformance.locators import ByCss, SelectorSpec
from ui_conformance.steps import StepLog


class ThemeToggleChecker:
    def __init__(
        self,
        driver: Driver,
        toggle: SelectorSpec,
        root: SelectorSpec = ByCss("body"),
        pattern: str = "dark",
    ) -> None:
        self.driver = driver
        self.toggle = toggle
        self.root = root
        self.pattern = pattern
        self.log = StepLog("theme-toggle")

    async def assert_initial_state(self) -> str:
        """Fresh pages must not already carry the dark class (no leaked preference)."""
        with self.log.step("Verify initial theme is light"):
            classes = await self.driver.class_name(await self.driver.locate(self.root))
            if re.search(self.pattern, classes):
                raise ToggleStateMismatch(
                    step="theme:initial",
                    message=f"root container already matches /{self.pattern}/ before toggling",
                    expected=f"no match for /{self.pattern}/",
                    actual=classes,
                )
            return classes

    async def run(self) -> str:
        """Locate, click once, assert. Returns the observed class string."""
        with self.log.step("Locate and verify theme toggle button"):
            toggle = await self.driver.locate(self.toggle)
            if not await self.driver.is_visible(toggle):
                raise PresenceNotFound(
                    step="theme:locate",
                    message=f"theme toggle {self.toggle} is not visible",
                    expected="visible",
                    actual="hidden or missing",
                    strategies=(str(self.toggle),),
                )

        with self.log.step("Toggle theme and verify change"):
            await self.driver.click(toggle)
            root = await self.driver.locate(self.root)
            if not await self.driver.has_class(root, self.pattern):
                classes = await self.driver.class_name(root)
                raise ToggleStateMismatch(
                    step="theme:toggle",
                    message=f"root container class does not match /{self.pattern}/ after toggling",
                    expected=f"/{self.pattern}/",
                    actual=classes,
                )
            return await self.driver.class_name(root)
