"""Structural landmark checks (header/footer present)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

from ui_conformance.browser import Driver
from ui_conformance.errors import PresenceNotFound
from ui_conformance.locators import ByCss, SelectorSpec
from ui_conformance.steps import StepLog


@dataclass(frozen=True)
class Landmark:
    """A landmark found either by its semantic tag or by a class pattern."""

    name: str
    semantic: SelectorSpec
    class_pattern: SelectorSpec


HEADER = Landmark("header", ByCss("header"), ByCss('[class*="header"], [class*="nav"]'))
FOOTER = Landmark("footer", ByCss("footer"), ByCss('[class*="footer"]'))


class PresenceChecker:
    """Assert each landmark exists using semantic-tag OR class-pattern lookup.

    Only counts are read, so running the checker repeatedly against an
    unchanged page gives the same verdict.
    """

    def __init__(self, driver: Driver, landmarks: Sequence[Landmark] = (HEADER, FOOTER)) -> None:
        self.driver = driver
        self.landmarks = tuple(landmarks)
        self.log = StepLog("structure")

    async def counts(self, landmark: Landmark) -> Dict[str, int]:
        semantic = await self.driver.count(await self.driver.locate(landmark.semantic))
        by_class = await self.driver.count(await self.driver.locate(landmark.class_pattern))
        return {"semantic": semantic, "class_pattern": by_class}

    async def check_landmark(self, landmark: Landmark) -> Dict[str, int]:
        with self.log.step(f"Verify {landmark.name} element exists"):
            found = await self.counts(landmark)
            if found["semantic"] == 0 and found["class_pattern"] == 0:
                raise PresenceNotFound(
                    step=f"presence:{landmark.name}",
                    message=(
                        f"no {landmark.name} found: semantic lookup {landmark.semantic} "
                        f"and class lookup {landmark.class_pattern} both matched 0 elements"
                    ),
                    expected="> 0 matches from either strategy",
                    actual=found,
                    strategies=(str(landmark.semantic), str(landmark.class_pattern)),
                )
            return found

    async def run(self) -> Dict[str, Dict[str, int]]:
        """Check every landmark in order; the first missing one aborts."""
        return {landmark.name: await self.check_landmark(landmark) for landmark in self.landmarks}
