"""System base class for ECS transformations.

Systems are the "logic" layer of the ECS architecture. They operate on
components attached to entities, reading required components and producing
new components (or new entities).

Example:
    >>> class MySystem(System):
    ...     def required_components(self):
    ...         return [Region]
    ...     def produced_components(self):
    ...         return [Fill]
    ...     def run(self, world, eids):
    ...         for eid in eids:
    ...             region = world.get_component(eid, Region)
    ...             world.add_component(eid, Fill(color=(0, 0, 0)))
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from quadart.core.world import World


class System(ABC):
    """Base class for all ECS systems.

    Systems transform components attached to entities. They declare:
    - required_components(): What inputs they need
    - produced_components(): What outputs they create
    - run(): The actual transformation logic
    """

    @abstractmethod
    def required_components(self) -> list[type]:
        """Return list of component types this system requires as input."""

    @abstractmethod
    def produced_components(self) -> list[type]:
        """Return list of component types this system produces as output."""

    @abstractmethod
    def run(self, world: World, eids: list[int]) -> None:
        """Execute system on given entities.

        Args:
            world: World instance with entities and components
            eids: List of entity IDs to process
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
