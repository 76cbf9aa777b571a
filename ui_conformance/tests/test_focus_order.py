"""Focus-order state machine against the in-memory site."""
from dataclasses import replace

import pytest

from ui_conformance.errors import DriverTimeout, FocusMismatch
from ui_conformance.focus_order import (
    FocusOrderMachine,
    FocusState,
    FocusTarget,
    MachineState,
    TraversalStep,
    validate_steps,
)
from ui_conformance.locators import ByRole
from ui_conformance.mock_site import MockSite


def _presses_through(steps, index):
    return sum(step.repeat_count for step in steps[: index + 1])


class StallingSite(MockSite):
    """Driver that times out on a chosen Tab press or focus query."""

    def __init__(self, stall_on_press=None, stall_on_focus_check=None, **kwargs):
        super().__init__(**kwargs)
        self.stall_on_press = stall_on_press
        self.stall_on_focus_check = stall_on_focus_check
        self.focus_checks = 0

    async def press_key(self, key):
        if key == "Tab" and self.presses("Tab") + 1 == self.stall_on_press:
            raise DriverTimeout(name="press_key", payload={"key": key}, message="page stopped responding", timeout_s=1.0)
        await super().press_key(key)

    async def is_focused(self, handle):
        self.focus_checks += 1
        if self.focus_checks == self.stall_on_focus_check:
            raise DriverTimeout(name="is_focused", payload={}, message="page stopped responding", timeout_s=1.0)
        return await super().is_focused(handle)


def _perturb(steps, index):
    """Point checkpoint ``index`` at an element that never gets focus."""
    step = steps[index]
    target = replace(
        step.target,
        name=f"{step.target.name} (perturbed)",
        selector=ByRole("link", name="Definitely not on the page"),
    )
    return steps[:index] + (replace(step, target=target),) + steps[index + 1 :]


class TestTraversal:

    @pytest.mark.asyncio
    async def test_react_dev_order_completes(self, site, layout):
        machine = FocusOrderMachine(site, layout.focus_order)

        state = await machine.run()

        assert state == MachineState(FocusState.COMPLETED)
        assert machine.log.passed
        assert machine.log.names() == [f"{s.target.name} focused" for s in layout.focus_order]
        assert site.presses("Tab") == _presses_through(layout.focus_order, len(layout.focus_order) - 1)

    @pytest.mark.asyncio
    async def test_one_checkpoint_at_a_time(self, site, layout):
        machine = FocusOrderMachine(site, layout.focus_order)
        assert str(machine.state) == "NotStarted"

        assert str(await machine.advance()) == "AtTarget(0)"
        assert site.presses("Tab") == 2
        assert str(await machine.advance()) == "AtTarget(1)"
        assert site.presses("Tab") == 3

        for _ in range(len(layout.focus_order) - 3):
            await machine.advance()
        assert machine.state == MachineState(FocusState.AT_TARGET, len(layout.focus_order) - 2)

        assert str(await machine.advance()) == "Completed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", range(9))
    async def test_perturbed_target_fails_at_that_index_only(self, site, layout, index):
        steps = _perturb(layout.focus_order, index)
        machine = FocusOrderMachine(site, steps)

        with pytest.raises(FocusMismatch) as excinfo:
            await machine.run()

        assert excinfo.value.index == index
        assert excinfo.value.expected == steps[index].target.name
        assert machine.state == MachineState(FocusState.FAILED, index)
        assert len(machine.log.names("passed")) == index
        assert machine.log.failed_step.name == f"{steps[index].target.name} focused"
        # Nothing after the failing checkpoint was attempted.
        assert site.presses("Tab") == _presses_through(steps, index)

    @pytest.mark.asyncio
    async def test_mismatch_reports_what_has_focus(self, site, layout):
        # Learn needs two presses because the search button sits in between.
        steps = list(layout.focus_order)
        steps[2] = replace(steps[2], repeat_count=1)
        machine = FocusOrderMachine(site, steps)

        with pytest.raises(FocusMismatch) as excinfo:
            await machine.run()

        assert excinfo.value.index == 2
        assert "Search Ctrl K" in excinfo.value.actual
        assert "checkpoint 2" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_focus_leaving_page_fails_without_further_presses(self, layout):
        site = MockSite(trailing_links=())
        beyond = TraversalStep(FocusTarget("After GitHub", ByRole("link", name="Quick Start"), 9), repeat_count=3)
        machine = FocusOrderMachine(site, layout.focus_order + (beyond,))

        with pytest.raises(FocusMismatch) as excinfo:
            await machine.run()

        assert excinfo.value.index == 9
        assert excinfo.value.actual is None
        assert "left the page" in excinfo.value.message
        # Failed on the first press past the end instead of using all three.
        assert site.presses("Tab") == _presses_through(layout.focus_order, 8) + 1

    @pytest.mark.asyncio
    async def test_driver_timeout_on_tab_fails_that_checkpoint(self, layout):
        steps = layout.focus_order
        site = StallingSite(stall_on_press=_presses_through(steps, 3) + 1)
        machine = FocusOrderMachine(site, steps)

        with pytest.raises(DriverTimeout):
            await machine.run()

        assert machine.state == MachineState(FocusState.FAILED, 4)
        assert machine.log.failed_step.name == f"{steps[4].target.name} focused"
        assert site.presses("Tab") == _presses_through(steps, 3)
        with pytest.raises(RuntimeError):
            await machine.advance()

    @pytest.mark.asyncio
    async def test_driver_timeout_on_focus_check_fails_that_checkpoint(self, layout):
        steps = layout.focus_order
        site = StallingSite(stall_on_focus_check=3)
        machine = FocusOrderMachine(site, steps)

        with pytest.raises(DriverTimeout):
            await machine.run()

        assert machine.state == MachineState(FocusState.FAILED, 2)
        assert len(machine.log.names("passed")) == 2
        # No Tab presses beyond the ones that led to checkpoint 2.
        assert site.presses("Tab") == _presses_through(steps, 2)

    @pytest.mark.asyncio
    async def test_focused_element_description_quotes_label(self, site):
        assert await site.describe_focused() is None

        await site.press_key("Tab")

        assert await site.describe_focused() == "<a> 'Skip to main content'"

    @pytest.mark.asyncio
    async def test_terminal_machine_refuses_to_advance(self, site, layout):
        machine = FocusOrderMachine(site, layout.focus_order[:1])
        await machine.run()

        with pytest.raises(RuntimeError):
            await machine.advance()


class TestStepValidation:

    def _step(self, name, ordinal, repeat=1):
        return TraversalStep(FocusTarget(name, ByRole("link", name=name), ordinal), repeat_count=repeat)

    def test_empty_list_rejected(self):
        with pytest.raises(ValueError, match="at least one"):
            validate_steps([])

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="duplicate"):
            validate_steps([self._step("Learn", 0), self._step("Learn", 1)])

    def test_ordinals_must_increase(self):
        with pytest.raises(ValueError, match="ordinal"):
            validate_steps([self._step("Learn", 1), self._step("Blog", 1)])

    def test_repeat_count_must_be_positive(self):
        with pytest.raises(ValueError, match="repeat_count"):
            validate_steps([self._step("Learn", 0, repeat=0)])

    def test_machine_validates_on_construction(self, site):
        with pytest.raises(ValueError):
            FocusOrderMachine(site, [])
