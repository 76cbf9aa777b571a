"""Selector specs understood by every driver.

A spec is a plain value describing *how* to find an element; resolving it is
the driver's business. Keeping specs as frozen dataclasses means layouts can
be declared at import time, compared in tests and printed in error messages.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ByRole:
    """ARIA role plus accessible name (``page.get_by_role``)."""

    role: str
    name: str | None = None
    exact: bool = False
    first: bool = False

    def __str__(self) -> str:
        label = f"{self.role}"
        if self.name is not None:
            label += f" {self.name!r}" + (" (exact)" if self.exact else "")
        return label + (" [first]" if self.first else "")


@dataclass(frozen=True)
class ByCss:
    """CSS / attribute pattern, optionally filtered by contained text."""

    pattern: str
    has_text: str | None = None
    first: bool = False

    def __str__(self) -> str:
        label = self.pattern
        if self.has_text is not None:
            label += f" has_text={self.has_text!r}"
        return label + (" [first]" if self.first else "")


@dataclass(frozen=True)
class Scoped:
    """``child`` looked up only inside whatever ``parent`` resolves to."""

    parent: "SelectorSpec"
    child: "SelectorSpec"

    def __str__(self) -> str:
        return f"{self.parent} >> {self.child}"


SelectorSpec = Union[ByRole, ByCss, Scoped]
