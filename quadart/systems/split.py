"""Quad splitting system.

A split destroys one quad entity and spawns four children covering its
top-left, top-right, bottom-left and bottom-right quadrants, in that order.
Halves are not rounded: child edges stay on the true geometric center of the
parent however deep the split goes.
"""

from __future__ import annotations

import logging

from quadart.components.quad import Color, Fill, Lineage, Region
from quadart.core.system import System
from quadart.core.world import World
from quadart.errors import InvalidRegionError

logger = logging.getLogger(__name__)


def quadrants(
    x: float, y: float, width: float, height: float
) -> list[tuple[float, float, float, float]]:
    """(x, y, w, h) of the four quadrants: TL, TR, BL, BR."""
    hw = width / 2
    hh = height / 2
    return [
        (x, y, hw, hh),
        (x + hw, y, hw, hh),
        (x, y + hh, hw, hh),
        (x + hw, y + hh, hw, hh),
    ]


def spawn_region(
    world: World,
    x: float,
    y: float,
    width: float,
    height: float,
    previous_color: Color,
    min_leaf_size: int,
    parent: int | None = None,
    depth: int = 0,
) -> int:
    """Create a quad entity with Region and Lineage attached.

    Fill and Fidelity are left to RegionStatistics.

    Raises:
        InvalidRegionError: If width or height is not positive
    """
    if not (width > 0 and height > 0):
        raise InvalidRegionError(f"Region size must be positive, got {width}x{height}")

    eid = world.new_entity()
    world.add_component(
        eid,
        Region(
            x=x,
            y=y,
            width=width,
            height=height,
            terminal=width < min_leaf_size or height < min_leaf_size,
        ),
    )
    world.add_component(eid, Lineage(previous_color=previous_color, parent=parent))
    world.metadata[eid]["depth"] = depth
    return eid


class QuadSplit(System):
    """Replace quads with their four quadrant children.

    - Input: Region and Fill of the parent
    - Output: four new entities with Region and Lineage

    Attributes:
        min_leaf_size: Children with a side below this are terminal
        last_children: Entity IDs spawned by the most recent run()
    """

    def __init__(self, min_leaf_size: int):
        if min_leaf_size <= 0:
            raise ValueError(f"min_leaf_size must be positive, got {min_leaf_size}")
        self.min_leaf_size = min_leaf_size
        self.last_children: list[int] = []

    def required_components(self) -> list[type]:
        return [Region, Fill]

    def produced_components(self) -> list[type]:
        return [Region, Lineage]

    def run(self, world: World, eids: list[int]) -> None:
        self.last_children = []
        for eid in eids:
            self.last_children.extend(self.split(world, eid))

    def split(self, world: World, eid: int) -> list[int]:
        """Split one quad and return the children's entity IDs.

        Raises:
            ValueError: If the quad is terminal
        """
        region = world.get_component(eid, Region)
        if region.terminal:
            raise ValueError(f"Entity {eid} is terminal and cannot be split")
        color = world.get_component(eid, Fill).color
        depth = world.metadata[eid].get("depth", 0)

        world.destroy_entity(eid)
        children = []
        for cx, cy, cw, ch in quadrants(region.x, region.y, region.width, region.height):
            child = spawn_region(
                world, cx, cy, cw, ch, color, self.min_leaf_size, parent=eid, depth=depth + 1
            )
            children.append(child)

        logger.debug("Split quad %d at depth %d into %s", eid, depth, children)
        return children
