"""Failure taxonomy for conformance checks.

Two roots:

* ``ToolError`` - the driver could not perform an operation (bad selector,
  detached element, browser crash). ``DriverTimeout`` is the subclass raised
  when a suspension point exceeds its bound.
* ``ConformanceError`` - the driver worked, but the page did not behave as
  expected. Every subclass carries the step name and expected/actual values
  so a single failure line says where in the sequence things went wrong.

Neither is ever retried by the harness.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(eq=False)
class ToolError(Exception):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


@dataclass(eq=False)
class DriverTimeout(ToolError):
    """A driver wait or action exceeded its timeout."""

    timeout_s: float | None = None

    def __str__(self) -> str:
        bound = f" after {self.timeout_s}s" if self.timeout_s is not None else ""
        return f"{self.name} timed out{bound} ({self.message}) with payload={self.payload}"


@dataclass(eq=False)
class ConformanceError(Exception):
    """Base class for assertion failures with step-level context."""

    step: str
    message: str
    expected: Any = None
    actual: Any = None

    def __str__(self) -> str:
        text = f"[{self.step}] {self.message}"
        if self.expected is not None or self.actual is not None:
            text += f" (expected={self.expected!r}, actual={self.actual!r})"
        return text


@dataclass(eq=False)
class PresenceNotFound(ConformanceError):
    """Neither location strategy found the landmark."""

    strategies: Tuple[str, ...] = ()


@dataclass(eq=False)
class FocusMismatch(ConformanceError):
    """The wrong element (or nothing) had focus at a checkpoint."""

    index: int = -1


@dataclass(eq=False)
class ToggleStateMismatch(ConformanceError):
    """The root container's class list did not reflect the toggle."""


@dataclass(eq=False)
class WorkflowPreconditionUnmet(ConformanceError):
    """A phase was attempted without the state earlier phases produce."""

    missing: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(eq=False)
class WorkflowPostconditionFailed(ConformanceError):
    """A phase ran its actions but an assertion on the result was false."""
