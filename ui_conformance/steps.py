"""Step-level annotations for conformance scenarios.

Each check wraps its stages in ``StepLog.step``; the log records pass/fail per
stage and emits the familiar progress markers through ``logging``. When a
scenario fails, ``StepLog.summary()`` shows exactly which stage broke and
which ones never ran.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)

PASSED = "passed"
FAILED = "failed"


@dataclass
class StepRecord:
    name: str
    status: str
    detail: str = ""


class StepLog:
    """Ordered record of the steps one scenario attempted."""

    def __init__(self, scenario: str) -> None:
        self.scenario = scenario
        self.records: List[StepRecord] = []

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        logger.info("🔍 %s: %s", self.scenario, name)
        try:
            yield
        except Exception as exc:
            self.records.append(StepRecord(name, FAILED, str(exc)))
            logger.error("❌ %s: %s - %s", self.scenario, name, exc)
            raise
        self.records.append(StepRecord(name, PASSED))
        logger.info("✅ %s: %s", self.scenario, name)

    @property
    def passed(self) -> bool:
        return all(record.status == PASSED for record in self.records)

    @property
    def failed_step(self) -> Optional[StepRecord]:
        return next((r for r in self.records if r.status == FAILED), None)

    def names(self, status: str | None = None) -> List[str]:
        return [r.name for r in self.records if status is None or r.status == status]

    def summary(self) -> str:
        lines = [f"{self.scenario}: {'PASS' if self.passed else 'FAIL'}"]
        for record in self.records:
            marker = "✅" if record.status == PASSED else "❌"
            line = f"  {marker} {record.name}"
            if record.detail:
                line += f" - {record.detail}"
            lines.append(line)
        return "\n".join(lines)
