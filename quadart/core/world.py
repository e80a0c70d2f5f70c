"""World: Entity-Component-System registry for quad nodes.

The World is the central ECS registry that manages:
- Entity creation (integer IDs, never reused for the lifetime of the World)
- Component storage (type -> entity -> component mapping)
- Component queries (find entities with specific component combinations)
- Arena memory holding the working image

The set of live entities is the decomposition frontier: a split destroys the
parent entity and creates four new ones. There are no parent/child pointers.

Example:
    >>> world = World()
    >>> image_ref = world.load_image(np.zeros((64, 64, 3), dtype=np.uint8))
    >>> eid = world.new_entity()
    >>> world.add_component(eid, Region(x=0, y=0, width=64, height=64))
    >>> entities = world.query(Region, Fill)  # Entities with both components
    >>> world.clear()  # Next run; entity IDs keep counting up
"""

from __future__ import annotations

from typing import Any, TypeVar

import numpy as np

from quadart.components.quad import Component, Fidelity, Fill, Lineage, QuadNode, Region
from quadart.core.arena import Arena, TensorRef

T = TypeVar("T", bound=Component)


class World:
    """Central ECS registry managing quad entities, components, and memory.

    The World owns:
    - Arena: Buffer holding the working image
    - Entity registry: Integer entity IDs
    - Component stores: Mappings from (component_type, entity_id) to component
    - Metadata: Arbitrary key-value data per entity

    Attributes:
        arena: Memory arena for the working image
        image: TensorRef of the working image, None until load_image()
        metadata: Per-entity metadata dict
    """

    def __init__(self, arena_bytes: int = 4 << 20):
        """Create World with specified arena size.

        Args:
            arena_bytes: Initial arena size in bytes (default 4 MB, enough for
                a 1024x1024 RGB image); grown by load_image() when needed
        """
        self.arena = Arena(size_bytes=arena_bytes)
        self.image: TensorRef | None = None
        self._next_eid = 0
        self._components: dict[type[Component], dict[int, Component]] = {}
        self.metadata: dict[int, dict[str, Any]] = {}

    @property
    def next_eid(self) -> int:
        """ID the next created entity will receive."""
        return self._next_eid

    def new_entity(self) -> int:
        """Create a new entity and return its ID.

        Returns:
            Entity ID (monotonically increasing integer)
        """
        eid = self._next_eid
        self._next_eid += 1
        self.metadata[eid] = {}
        return eid

    def load_image(self, img: np.ndarray) -> TensorRef:
        """Copy a working image into the arena.

        Any previously loaded image is invalidated.

        Args:
            img: RGB image array (H, W, 3) with dtype uint8

        Returns:
            TensorRef to the copied image

        Raises:
            ValueError: If image shape or dtype is invalid
        """
        if img.ndim != 3 or img.shape[2] != 3:
            raise ValueError(f"Expected image with shape (H, W, 3), got {img.shape}")
        if img.dtype != np.uint8:
            raise ValueError(f"Expected dtype uint8, got {img.dtype}")
        if img.shape[0] == 0 or img.shape[1] == 0:
            raise ValueError(f"Image must not be empty, got shape {img.shape}")

        if img.nbytes > self.arena.size:
            self.arena = Arena(size_bytes=img.nbytes)
        else:
            self.arena.reset()

        self.image = self.arena.copy_tensor(img)
        return self.image

    def clear(self) -> None:
        """Destroy all entities and components and invalidate the image.

        Entity IDs are not reset, so IDs stay unique across runs.
        """
        self.arena.reset()
        self.image = None
        self._components.clear()
        self.metadata.clear()

    def add_component(self, eid: int, component: Component) -> None:
        """Attach a component to an entity.

        Raises:
            ValueError: If entity does not exist
        """
        if eid not in self.metadata:
            raise ValueError(f"Entity {eid} does not exist")

        self._components.setdefault(type(component), {})[eid] = component

    def get_component(self, eid: int, comp_type: type[T]) -> T:
        """Retrieve a component from an entity.

        Raises:
            KeyError: If entity does not have the component
        """
        if comp_type not in self._components:
            raise KeyError(f"No entities have component type {comp_type.__name__}")
        if eid not in self._components[comp_type]:
            raise KeyError(f"Entity {eid} does not have component {comp_type.__name__}")

        return self._components[comp_type][eid]  # type: ignore

    def query(self, *comp_types: type[Component]) -> list[int]:
        """Query entities that have ALL specified component types.

        Returns:
            Sorted list of entity IDs that have all specified components

        Example:
            >>> eids = world.query(Region, Fidelity)
        """
        if not comp_types:
            return sorted(self.metadata)

        result_set = set(self._components.get(comp_types[0], {}))
        for comp_type in comp_types[1:]:
            if comp_type not in self._components:
                return []
            result_set &= set(self._components[comp_type])

        return sorted(result_set)

    def destroy_entity(self, eid: int) -> None:
        """Remove entity and all its components.

        Raises:
            ValueError: If entity does not exist
        """
        if eid not in self.metadata:
            raise ValueError(f"Entity {eid} does not exist")

        for comp_store in self._components.values():
            comp_store.pop(eid, None)

        del self.metadata[eid]

    def node(self, eid: int) -> QuadNode:
        """Assemble the read-only QuadNode for a fully populated quad entity.

        Raises:
            KeyError: If any of Region, Lineage, Fill, Fidelity is missing
        """
        region = self.get_component(eid, Region)
        lineage = self.get_component(eid, Lineage)
        fill = self.get_component(eid, Fill)
        fidelity = self.get_component(eid, Fidelity)
        return QuadNode(
            id=eid,
            x=region.x,
            y=region.y,
            width=region.width,
            height=region.height,
            color=fill.color,
            previous_color=lineage.previous_color,
            error=fidelity.error,
            terminal=region.terminal,
        )

    def nodes(self) -> list[QuadNode]:
        """All fully populated quads, ordered by entity ID."""
        return [self.node(eid) for eid in self.query(Region, Lineage, Fill, Fidelity)]

    def __len__(self) -> int:
        return len(self.metadata)

    def __repr__(self) -> str:
        return (
            f"World(entities={len(self.metadata)}, "
            f"component_types={len(self._components)}, arena={self.arena})"
        )
