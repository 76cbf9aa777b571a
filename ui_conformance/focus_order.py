"""Keyboard focus traversal as an explicit state machine.

The caller supplies the page's tab order as a list of ``TraversalStep``s: how
many times to press Tab, and which target must own focus afterwards. The
machine walks the list one checkpoint at a time:

    NotStarted -> AtTarget(0) -> AtTarget(1) -> ... -> Completed
                       \\______________\\____________-> Failed(i)

``Failed(i)`` and ``Completed`` are terminal. A mismatch at checkpoint ``i``
never touches the checkpoints after it. If Tab moves focus off the document
entirely the machine fails on the spot instead of tabbing on.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ui_conformance.browser import Driver
from ui_conformance.errors import FocusMismatch
from ui_conformance.locators import SelectorSpec
from ui_conformance.steps import StepLog

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    """Traversal actions, valued by the key that performs them."""

    ADVANCE_FOCUS = "Tab"


class FocusState(enum.Enum):
    NOT_STARTED = "NotStarted"
    AT_TARGET = "AtTarget"
    FAILED = "Failed"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class FocusTarget:
    name: str
    selector: SelectorSpec
    ordinal: int


@dataclass(frozen=True)
class TraversalStep:
    """Press ``action`` ``repeat_count`` times, then expect ``target`` focused."""

    target: FocusTarget
    repeat_count: int = 1
    action: Action = Action.ADVANCE_FOCUS


@dataclass(frozen=True)
class MachineState:
    kind: FocusState
    index: Optional[int] = None

    @property
    def terminal(self) -> bool:
        return self.kind in (FocusState.FAILED, FocusState.COMPLETED)

    def __str__(self) -> str:
        if self.index is None:
            return self.kind.value
        return f"{self.kind.value}({self.index})"


def validate_steps(steps: Sequence[TraversalStep]) -> Tuple[TraversalStep, ...]:
    """Enforce the caller contract: non-empty, unique names, increasing ordinals."""
    steps = tuple(steps)
    if not steps:
        raise ValueError("focus traversal needs at least one target")

    seen = set()
    previous_ordinal = None
    for step in steps:
        name = step.target.name
        if name in seen:
            raise ValueError(f"duplicate focus target name: {name!r}")
        seen.add(name)
        if previous_ordinal is not None and step.target.ordinal <= previous_ordinal:
            raise ValueError(
                f"focus target {name!r} has ordinal {step.target.ordinal}, "
                f"expected > {previous_ordinal}"
            )
        previous_ordinal = step.target.ordinal
        if step.repeat_count < 1:
            raise ValueError(f"focus target {name!r} needs repeat_count >= 1, got {step.repeat_count}")
    return steps


class FocusOrderMachine:
    """Walk the expected tab order against a live ``Driver``."""

    def __init__(self, driver: Driver, steps: Sequence[TraversalStep], log: StepLog | None = None) -> None:
        self.driver = driver
        self.steps = validate_steps(steps)
        self.log = log or StepLog("focus-order")
        self._state = MachineState(FocusState.NOT_STARTED)

    @property
    def state(self) -> MachineState:
        return self._state

    def _next_index(self) -> int:
        if self._state.kind is FocusState.NOT_STARTED:
            return 0
        return self._state.index + 1

    def _fail(self, index: int, target: FocusTarget, message: str, actual: str | None) -> FocusMismatch:
        self._state = MachineState(FocusState.FAILED, index)
        return FocusMismatch(
            step=f"focus:{target.name}",
            message=message,
            expected=target.name,
            actual=actual,
            index=index,
        )

    async def advance(self) -> MachineState:
        """Run exactly one checkpoint and return the new state."""
        if self._state.terminal:
            raise RuntimeError(f"focus traversal already finished in state {self._state}")

        index = self._next_index()
        step = self.steps[index]
        target = step.target

        with self.log.step(f"{target.name} focused"):
            try:
                for press in range(1, step.repeat_count + 1):
                    logger.debug("⌨️ %s (%d/%d) towards %s", step.action.value, press, step.repeat_count, target.name)
                    await self.driver.press_key(step.action.value)
                    if await self.driver.describe_focused() is None:
                        raise self._fail(
                            index,
                            target,
                            f"focus left the page after {step.action.value} {press}/{step.repeat_count} "
                            f"while moving to {target.name!r}",
                            None,
                        )

                handle = await self.driver.locate(target.selector)
                if not await self.driver.is_focused(handle):
                    actual = await self.driver.describe_focused()
                    raise self._fail(
                        index,
                        target,
                        f"expected {target.name!r} ({target.selector}) to have focus at checkpoint {index}",
                        actual,
                    )
            except FocusMismatch:
                raise
            except Exception:
                self._state = MachineState(FocusState.FAILED, index)
                raise

        if index == len(self.steps) - 1:
            self._state = MachineState(FocusState.COMPLETED)
        else:
            self._state = MachineState(FocusState.AT_TARGET, index)
        return self._state

    async def run(self) -> MachineState:
        """Advance until Completed; a mismatch raises FocusMismatch."""
        while not self._state.terminal:
            await self.advance()
        return self._state
