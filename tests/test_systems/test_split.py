"""Tests for quadrant geometry and the QuadSplit system."""

import numpy as np
import pytest

from quadart.components.quad import Fill, Lineage, Region
from quadart.core.world import World
from quadart.errors import InvalidRegionError
from quadart.systems.split import QuadSplit, quadrants, spawn_region


def assert_tiles(parent: tuple[float, float, float, float], children: list) -> None:
    """Children must cover the parent exactly, without gap or overlap."""
    px, py, pw, ph = parent
    (x0, y0, w0, h0), (x1, y1, w1, h1), (x2, y2, w2, h2), (x3, y3, w3, h3) = children

    # Top-left corner and far edges line up with the parent
    assert (x0, y0) == (px, py)
    assert x1 + w1 == px + pw and x3 + w3 == px + pw
    assert y2 + h2 == py + ph and y3 + h3 == py + ph
    # Shared inner edges: no gap, no overlap
    assert x0 + w0 == x1 and x2 + w2 == x3
    assert y0 + h0 == y2 and y1 + h1 == y3
    assert x0 == x2 and x1 == x3 and y0 == y1 and y2 == y3
    # Areas add up
    assert sum(w * h for _, _, w, h in children) == pytest.approx(pw * ph)


class TestQuadrants:
    """Tests for quadrants()."""

    def test_order(self) -> None:
        """Test TL, TR, BL, BR order."""
        assert quadrants(0, 0, 16, 8) == [
            (0, 0, 8, 4),
            (8, 0, 8, 4),
            (0, 4, 8, 4),
            (8, 4, 8, 4),
        ]

    @pytest.mark.parametrize(
        "rect",
        [
            (0, 0, 64, 64),
            (0, 0, 1023, 767),
            (12.5, 3.25, 25, 6.5),
            (0.1, 0.2, 0.3, 0.7),
        ],
    )
    def test_partition(self, rect: tuple[float, float, float, float]) -> None:
        """Test the four quadrants tile the parent for any geometry."""
        assert_tiles(rect, quadrants(*rect))

    def test_no_rounding(self) -> None:
        """Test odd sizes produce fractional halves."""
        tl, tr, _, _ = quadrants(0, 0, 25, 25)
        assert tl[2] == 12.5
        assert tr[0] == 12.5

    def test_deep_split_stays_centered(self) -> None:
        """Test repeated halving of the last quadrant keeps exact edges."""
        rect = (0.0, 0.0, 1000.0, 600.0)
        for _ in range(12):
            children = quadrants(*rect)
            assert_tiles(rect, children)
            rect = children[3]
        assert rect[0] + rect[2] == 1000.0
        assert rect[1] + rect[3] == 600.0


class TestSpawnRegion:
    """Tests for spawn_region()."""

    def test_terminal_flag(self) -> None:
        """Test quads with a side below the leaf size are terminal."""
        world = World()
        big = spawn_region(world, 0, 0, 12, 12, (0, 0, 0), min_leaf_size=12)
        thin = spawn_region(world, 0, 0, 40, 11.9, (0, 0, 0), min_leaf_size=12)

        assert world.get_component(big, Region).terminal is False
        assert world.get_component(thin, Region).terminal is True

    def test_lineage(self) -> None:
        """Test previous color and parent are recorded."""
        world = World()
        eid = spawn_region(world, 0, 0, 4, 4, (9, 8, 7), min_leaf_size=2, parent=5, depth=3)

        lineage = world.get_component(eid, Lineage)
        assert lineage.previous_color == (9, 8, 7)
        assert lineage.parent == 5
        assert world.metadata[eid]["depth"] == 3

    def test_invalid_region(self) -> None:
        """Test empty regions are rejected before an entity is created."""
        world = World()
        with pytest.raises(InvalidRegionError):
            spawn_region(world, 0, 0, 0, 4, (0, 0, 0), min_leaf_size=2)
        assert len(world) == 0


class TestQuadSplit:
    """Tests for QuadSplit system."""

    def _parent(self, world: World, size: float = 16) -> int:
        eid = spawn_region(world, 0, 0, size, size, (0, 0, 0), min_leaf_size=4)
        world.add_component(eid, Fill(color=(50, 60, 70)))
        return eid

    def test_split_replaces_parent(self) -> None:
        """Test the parent is destroyed and four children are spawned."""
        world = World()
        parent = self._parent(world)

        children = QuadSplit(min_leaf_size=4).split(world, parent)

        assert len(children) == 4
        assert parent not in world.metadata
        assert world.query(Region) == children
        regions = [world.get_component(c, Region) for c in children]
        assert_tiles((0, 0, 16, 16), [(r.x, r.y, r.width, r.height) for r in regions])

    def test_children_inherit_color(self) -> None:
        """Test every child remembers the parent's color."""
        world = World()
        parent = self._parent(world)

        children = QuadSplit(min_leaf_size=4).split(world, parent)

        for child in children:
            lineage = world.get_component(child, Lineage)
            assert lineage.previous_color == (50, 60, 70)
            assert lineage.parent == parent
            assert world.metadata[child]["depth"] == 1

    def test_children_ids_increase(self) -> None:
        """Test children get fresh, increasing IDs."""
        world = World()
        parent = self._parent(world)

        children = QuadSplit(min_leaf_size=4).split(world, parent)
        assert children == sorted(children)
        assert min(children) > parent

    def test_terminal_not_split(self) -> None:
        """Test terminal quads are refused."""
        world = World()
        eid = spawn_region(world, 0, 0, 2, 2, (0, 0, 0), min_leaf_size=4)
        world.add_component(eid, Fill(color=(0, 0, 0)))

        with pytest.raises(ValueError, match="terminal"):
            QuadSplit(min_leaf_size=4).split(world, eid)

    def test_run_collects_children(self) -> None:
        """Test run() splits every given quad."""
        world = World()
        first = self._parent(world)
        second = spawn_region(world, 16, 0, 16, 16, (0, 0, 0), min_leaf_size=4)
        world.add_component(second, Fill(color=(1, 1, 1)))

        system = QuadSplit(min_leaf_size=4)
        system.run(world, [first, second])

        assert len(system.last_children) == 8
        assert len(world) == 8

    def test_invalid_leaf_size(self) -> None:
        """Test non-positive leaf sizes are rejected."""
        with pytest.raises(ValueError, match="min_leaf_size must be positive"):
            QuadSplit(min_leaf_size=0)

    def test_split_uses_fractional_children(self) -> None:
        """Test odd-sized parents split at the exact center."""
        world = World()
        parent = spawn_region(world, 0, 0, 25, 15, (0, 0, 0), min_leaf_size=4)
        world.add_component(parent, Fill(color=(0, 0, 0)))

        children = QuadSplit(min_leaf_size=4).split(world, parent)
        region = world.get_component(children[3], Region)
        assert (region.x, region.y, region.width, region.height) == (12.5, 7.5, 12.5, 7.5)
        assert np.isclose(region.x + region.width, 25)
