"""Search-and-favorites workflow as a chain of phases with carried state.

Each phase declares the session keys it needs (``requires``) and the keys it
contributes (``produces``). The chain is validated before anything runs, and
each phase re-checks its requirements against the live ``SearchSession`` so
calling a phase out of order fails before a single driver call is made.

    open_query  -> query_text
    select      -> selected_result_identity
    save        -> favorited_identity          (needs selected_result_identity)
    retrieve    -> retrieved_identity          (needs favorited_identity)
    verify                                     (needs favorited + retrieved)

The first failure ends the run; later phases are never attempted and no phase
is ever retried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Awaitable, Callable, FrozenSet, List, Mapping, Optional, Sequence, Tuple

import anyio

from ui_conformance.browser import Driver
from ui_conformance.config import settings
from ui_conformance.errors import DriverTimeout, WorkflowPostconditionFailed, WorkflowPreconditionUnmet
from ui_conformance.layouts import SearchLayout
from ui_conformance.locators import SelectorSpec
from ui_conformance.steps import StepLog

logger = logging.getLogger(__name__)


@dataclass
class SearchSession:
    """Ephemeral state carried between phases of one run."""

    query_text: Optional[str] = None
    selected_result_identity: Optional[str] = None
    favorited_identity: Optional[str] = None
    retrieved_identity: Optional[str] = None
    overlay_open: bool = False
    completed_phases: List[str] = field(default_factory=list)

    def has(self, key: str) -> bool:
        return getattr(self, key, None) not in (None, "")

    def apply(self, phase_id: str, produced: Mapping[str, Any]) -> None:
        known = {f.name for f in fields(self)} - {"completed_phases"}
        for key, value in produced.items():
            if key not in known:
                raise KeyError(f"phase {phase_id!r} produced unknown session key {key!r}")
            setattr(self, key, value)
        self.completed_phases.append(phase_id)


PhaseAction = Callable[["WorkflowVerifier"], Awaitable[Mapping[str, Any]]]


@dataclass(frozen=True)
class WorkflowPhase:
    id: str
    title: str
    execute: PhaseAction
    requires: FrozenSet[str] = frozenset()
    produces: FrozenSet[str] = frozenset()


@dataclass
class WorkflowReport:
    session: SearchSession
    log: StepLog

    @property
    def passed(self) -> bool:
        return self.log.passed

    def summary(self) -> str:
        return self.log.summary()


def validate_chain(phases: Sequence[WorkflowPhase]) -> Tuple[WorkflowPhase, ...]:
    """Check every phase's requirements are produced by an earlier phase."""
    available: set = set()
    seen: set = set()
    for phase in phases:
        if phase.id in seen:
            raise ValueError(f"duplicate workflow phase id: {phase.id!r}")
        seen.add(phase.id)
        missing = tuple(sorted(phase.requires - available))
        if missing:
            raise WorkflowPreconditionUnmet(
                step=f"workflow:{phase.id}",
                message=f"phase {phase.id!r} requires {missing} but no earlier phase produces it",
                expected=sorted(phase.requires),
                actual=sorted(available),
                missing=missing,
            )
        available |= phase.produces
    return tuple(phases)


async def wait_for_count(
    driver: Driver,
    spec: SelectorSpec,
    timeout: float,
    interval: float,
    max_interval: float = 1.0,
) -> int:
    """Poll until ``spec`` matches at least one element.

    The poll interval doubles after every miss (capped at ``max_interval``).
    Raises DriverTimeout once ``timeout`` seconds have passed.
    """
    handle = await driver.locate(spec)
    deadline = anyio.current_time() + timeout
    delay = interval
    polls = 0
    while True:
        polls += 1
        found = await driver.count(handle)
        if found > 0:
            return found
        remaining = deadline - anyio.current_time()
        if remaining <= 0:
            raise DriverTimeout(
                name="wait_for_count",
                payload={"spec": str(spec), "polls": polls},
                message=f"{spec} matched nothing within {timeout}s",
                timeout_s=timeout,
            )
        await anyio.sleep(min(delay, remaining))
        delay = min(delay * 2, max_interval)


class WorkflowVerifier:
    """Drive the search-and-favorites phases against one ``SearchSession``."""

    def __init__(
        self,
        driver: Driver,
        layout: SearchLayout,
        query: str | None = None,
        expected_selection: str | None = None,
        phases: Sequence[WorkflowPhase] | None = None,
        results_timeout: float | None = None,
        poll_interval: float | None = None,
        idle_wait_ms: int | None = None,
    ) -> None:
        self.driver = driver
        self.layout = layout
        self.query = settings.search_query if query is None else query
        self.expected_selection = expected_selection
        self.results_timeout = settings.results_timeout if results_timeout is None else results_timeout
        self.poll_interval = settings.results_poll_interval if poll_interval is None else poll_interval
        self.idle_wait_ms = settings.idle_wait_ms if idle_wait_ms is None else idle_wait_ms

        self.session = SearchSession()
        self.log = StepLog("search-favorites")
        self.phases = validate_chain(phases if phases is not None else default_phases())
        self.failed_phase: str | None = None

    def phase(self, phase_id: str) -> WorkflowPhase:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        raise KeyError(phase_id)

    # ---- execution ---------------------------------------------------------------
    async def run_phase(self, phase: WorkflowPhase | str) -> Mapping[str, Any]:
        """Execute a single phase after checking its preconditions."""
        if isinstance(phase, str):
            phase = self.phase(phase)
        if self.failed_phase is not None:
            raise RuntimeError(f"workflow already failed in phase {self.failed_phase!r}")
        if phase.id in self.session.completed_phases:
            raise RuntimeError(f"phase {phase.id!r} already ran in this session")

        missing = tuple(sorted(key for key in phase.requires if not self.session.has(key)))
        if missing:
            self.failed_phase = phase.id
            raise WorkflowPreconditionUnmet(
                step=f"workflow:{phase.id}",
                message=f"phase {phase.id!r} attempted without {missing}",
                expected=sorted(phase.requires),
                actual=self.session.completed_phases[:],
                missing=missing,
            )

        try:
            with self.log.step(phase.title):
                produced = dict(await phase.execute(self))
        except Exception:
            self.failed_phase = phase.id
            raise

        self.session.apply(phase.id, produced)
        return produced

    async def run(self) -> WorkflowReport:
        for phase in self.phases:
            await self.run_phase(phase)
        logger.info("✅ search-favorites workflow completed: %s", self.session.favorited_identity)
        return WorkflowReport(self.session, self.log)

    def _postcondition(self, phase_id: str, message: str, expected: Any, actual: Any) -> WorkflowPostconditionFailed:
        return WorkflowPostconditionFailed(
            step=f"workflow:{phase_id}",
            message=message,
            expected=expected,
            actual=actual,
        )

    # ---- phases ------------------------------------------------------------------
    async def open_search(self) -> None:
        await self.driver.click(await self.driver.locate(self.layout.trigger))

    async def open_query(self) -> Mapping[str, Any]:
        await self.open_search()
        query_input = await self.driver.locate(self.layout.query_input)
        await self.driver.click(query_input)
        await self.driver.type(query_input, self.query)

        if self.layout.results is None:
            await self.driver.wait_idle(self.idle_wait_ms)
        else:
            found = await wait_for_count(self.driver, self.layout.results, self.results_timeout, self.poll_interval)
            logger.info("Search %r returned %d result(s)", self.query, found)
        return {"query_text": self.query, "overlay_open": True}

    async def select(self) -> Mapping[str, Any]:
        label_handle = await self.driver.locate(self.layout.top_result_label)
        if await self.driver.count(label_handle) == 0:
            raise self._postcondition("select", "no top result to select", "a result label", None)

        label = await self.driver.text(label_handle)
        if not label:
            raise self._postcondition("select", "top result has an empty label", "non-empty label", label)
        if self.expected_selection and self.expected_selection.lower() not in label.lower():
            raise self._postcondition(
                "select",
                f"top result for {self.session.query_text!r} is not the intended one",
                self.expected_selection,
                label,
            )

        await self.driver.press_key(self.layout.confirm_key)
        return {"selected_result_identity": label, "overlay_open": False}

    async def save(self) -> Mapping[str, Any]:
        identity = self.session.selected_result_identity
        await self.open_search()

        control = await self.driver.locate(self.layout.saved_hit(identity))
        if not await self.driver.is_visible(control):
            raise self._postcondition("save", f"save control for {identity!r} is not visible", "visible", "hidden or missing")
        await self.driver.click(control)
        return {"favorited_identity": identity, "overlay_open": True}

    async def retrieve(self) -> Mapping[str, Any]:
        identity = self.session.favorited_identity
        await self.driver.press_key(self.layout.close_key)
        await self.open_search()

        entry = await self.driver.locate(self.layout.favorite())
        if not await self.driver.is_visible(entry):
            raise self._postcondition("retrieve", "favorites list shows no entry", identity, None)
        listed = await self.driver.text(entry)
        if identity.lower() not in listed.lower():
            raise self._postcondition("retrieve", "first favorite is not the saved result", identity, listed)

        await self.driver.click(entry)
        return {"retrieved_identity": identity, "overlay_open": False}

    async def verify(self) -> Mapping[str, Any]:
        identity = self.session.favorited_identity
        label = await self.driver.locate(self.layout.result_label(identity))
        if not await self.driver.is_visible(label):
            raise self._postcondition("verify", "saved search result is not displayed", identity, "not visible")
        return {}


def default_phases() -> Tuple[WorkflowPhase, ...]:
    return (
        WorkflowPhase(
            "open_query",
            "Open search and perform query",
            WorkflowVerifier.open_query,
            produces=frozenset({"query_text", "overlay_open"}),
        ),
        WorkflowPhase(
            "select",
            "Select first search result",
            WorkflowVerifier.select,
            requires=frozenset({"query_text"}),
            produces=frozenset({"selected_result_identity", "overlay_open"}),
        ),
        WorkflowPhase(
            "save",
            "Save search to favorites",
            WorkflowVerifier.save,
            requires=frozenset({"selected_result_identity"}),
            produces=frozenset({"favorited_identity", "overlay_open"}),
        ),
        WorkflowPhase(
            "retrieve",
            "Access saved search",
            WorkflowVerifier.retrieve,
            requires=frozenset({"favorited_identity"}),
            produces=frozenset({"retrieved_identity", "overlay_open"}),
        ),
        WorkflowPhase(
            "verify",
            "Verify saved search result",
            WorkflowVerifier.verify,
            requires=frozenset({"favorited_identity", "retrieved_identity"}),
        ),
    )
