"""Tests for System base class."""

import pytest

from quadart.components.quad import Component
from quadart.core.system import System
from quadart.core.world import World


# Mock component for testing
class MockInput(Component):
    """Mock input component."""

    value: int


class MockOutput(Component):
    """Mock output component."""

    result: int


# Mock system implementation
class MockSystem(System):
    """Mock system for testing."""

    def required_components(self) -> list[type]:
        return [MockInput]

    def produced_components(self) -> list[type]:
        return [MockOutput]

    def run(self, world: World, eids: list[int]) -> None:
        for eid in eids:
            input_comp = world.get_component(eid, MockInput)
            world.add_component(eid, MockOutput(result=input_comp.value * 2))


class TestSystemBase:
    """Tests for System base class."""

    def test_abstract(self) -> None:
        """Test System cannot be instantiated directly."""
        with pytest.raises(TypeError):
            System()  # type: ignore[abstract]

    def test_run(self) -> None:
        """Test run produces the declared components."""
        world = World()
        eid = world.new_entity()
        world.add_component(eid, MockInput(value=21))

        MockSystem().run(world, [eid])
        assert world.get_component(eid, MockOutput).result == 42

    def test_repr(self) -> None:
        """Test repr shows the class name."""
        assert repr(MockSystem()) == "MockSystem()"
