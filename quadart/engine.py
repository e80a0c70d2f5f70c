"""Worst-error-first quadtree decomposition engine.

The engine owns the frontier (the live quad entities of a World) and refines
it one split at a time: each step picks the splittable quad with the greatest
error and replaces it with its four quadrants. The engine stalls when no quad
can be split any more or the worst one is already below the error threshold.

All public operations hold one re-entrant lock, so a step is atomic with
respect to snapshots taken from another thread.

Example:
    >>> engine = DecompositionEngine(QuadArtConfig(min_leaf_size=8))
    >>> engine.reset(image)
    >>> engine.start()
    >>> while not engine.step().stalled:
    ...     pass
    >>> frame = engine.snapshot()
    >>> print(frame.status_line())
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np

from quadart.components.quad import Color, QuadNode
from quadart.config import QuadArtConfig
from quadart.core.sampler import PixelSampler, as_rgb_array, to_working_image
from quadart.core.world import World
from quadart.errors import EngineStateError
from quadart.systems.split import QuadSplit, spawn_region
from quadart.systems.statistics import RegionStatistics

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STALLED = "stalled"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step().

    Attributes:
        node: The quad that was split, None when stalled
        children: Its four children (TL, TR, BL, BR), empty when stalled
    """

    node: QuadNode | None = None
    children: tuple[QuadNode, ...] = ()

    @property
    def stalled(self) -> bool:
        return self.node is None


STALLED = StepResult()


@dataclass(frozen=True)
class FrameSnapshot:
    """Consistent, read-only copy of the frontier for a renderer.

    Attributes:
        nodes: Live quads ordered by ID
        last_error: Error of the most recently split quad (0.0 before any split)
        iterations: Number of splits in this run
        size: Working image (width, height)
        rounded_corner: Corner radius passed through from the configuration
        state: Engine state when the snapshot was taken
    """

    nodes: tuple[QuadNode, ...]
    last_error: float
    iterations: int
    size: tuple[int, int]
    rounded_corner: float
    state: EngineState

    @property
    def shapes(self) -> int:
        return len(self.nodes)

    def status_line(self) -> str:
        """``Iterations: N - Shapes: M - Error: E``, E to 5 significant digits."""
        return (
            f"Iterations: {self.iterations} - Shapes: {self.shapes} "
            f"- Error: {self.last_error:.5g}"
        )


def select_split_candidate(nodes: Iterable[QuadNode]) -> QuadNode | None:
    """Non-terminal quad with the strictly greatest error; ties go to the lowest ID."""
    best: QuadNode | None = None
    for node in nodes:
        if node.terminal:
            continue
        if (
            best is None
            or node.error > best.error
            or (node.error == best.error and node.id < best.id)
        ):
            best = node
    return best


class DecompositionEngine:
    """Adaptive quadtree decomposition of one image.

    States: IDLE after reset() or stop(), RUNNING after start(), STALLED once
    step() finds nothing worth splitting.

    Attributes:
        config: Active configuration, replaced only through restart()
        world: Registry holding the frontier and the working image
    """

    def __init__(self, config: QuadArtConfig | None = None):
        self.config = config or QuadArtConfig()
        # load_image() grows the arena to fit the working image on reset()
        self.world = World(arena_bytes=1 << 16)
        self._lock = threading.RLock()
        self._state = EngineState.IDLE
        self._source: Any = None
        self._statistics: RegionStatistics | None = None
        self._splitter = QuadSplit(self.config.min_leaf_size)
        self._created = 0
        self._last_error = 0.0
        self._history: list[float] = []

    # ---- State ----
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is EngineState.RUNNING

    @property
    def loaded(self) -> bool:
        return self._statistics is not None

    @property
    def size(self) -> tuple[int, int]:
        """Working image (width, height); (0, 0) before reset()."""
        if self._statistics is None:
            return (0, 0)
        sampler = self._statistics.sampler
        return (sampler.width, sampler.height)

    @property
    def last_error(self) -> float:
        return self._last_error

    @property
    def iterations(self) -> int:
        """Splits performed in this run: (nodes created - 1) / 4."""
        return max(0, self._created - 1) // 4

    @property
    def history(self) -> tuple[float, ...]:
        """Errors of the split quads, in split order."""
        with self._lock:
            return tuple(self._history)

    @property
    def frontier(self) -> list[QuadNode]:
        with self._lock:
            return self.world.nodes()

    def working_image(self) -> np.ndarray:
        """Copy of the working image (H, W, 3) uint8."""
        with self._lock:
            image = self._require_loaded("working_image").sampler.image
            return self.world.arena.view(image).copy()

    # ---- Transitions ----
    def reset(self, image: Any = None) -> QuadNode:
        """Start a new run over image (or the current image) with a single root quad.

        Args:
            image: Decoded image (PIL image or uint8 array); None reuses the
                image from the previous reset()

        Returns:
            The root quad

        Raises:
            EngineStateError: If image is None and no image was loaded before
            ValueError: If the image cannot be used
        """
        with self._lock:
            if image is None:
                if self._source is None:
                    raise EngineStateError("reset() needs an image; none was loaded yet")
                image = self._source
            else:
                image = as_rgb_array(image).copy()

            working = to_working_image(image, self.config.max_working_size)
            self._source = image

            self.world.clear()
            self.world.load_image(working)
            self._statistics = RegionStatistics(PixelSampler(self.world))
            self._splitter = QuadSplit(self.config.min_leaf_size)
            self._created = 0
            self._last_error = 0.0
            self._history = []

            height, width = working.shape[:2]
            root = self.make_node(0, 0, width, height, self.config.initial_color)
            self._state = EngineState.IDLE
            logger.info(
                "Reset decomposition: working size %dx%d, root error %.5g",
                width, height, root.error,
            )
            return root

    def start(self) -> None:
        """IDLE/STALLED -> RUNNING. The frontier is kept as is."""
        with self._lock:
            self._require_loaded("start")
            if self._state is not EngineState.RUNNING:
                logger.info("Decomposition %s -> running", self._state.value)
            self._state = EngineState.RUNNING

    def stop(self) -> None:
        """RUNNING -> IDLE without discarding the frontier."""
        with self._lock:
            if self._state is EngineState.RUNNING:
                self._state = EngineState.IDLE
                logger.info("Decomposition paused after %d splits", self.iterations)

    def restart(self, config: QuadArtConfig | None = None) -> QuadNode:
        """Apply config (if given), then reset() with the current image and start().

        Returns:
            The new root quad
        """
        with self._lock:
            if self._source is None:
                raise EngineStateError("restart() needs an image; call reset(image) first")
            if config is not None:
                self.config = config
            root = self.reset()
            self.start()
            return root

    # ---- Model ----
    def make_node(
        self, x: float, y: float, width: float, height: float, parent_color: Color
    ) -> QuadNode:
        """Create a quad, sample it, and return its record.

        Raises:
            InvalidRegionError: If the region is empty or outside the image
        """
        with self._lock:
            statistics = self._require_loaded("make_node")
            # Reject regions the sampler cannot read before registering an entity
            statistics.sampler.window(x, y, width, height)
            eid = spawn_region(
                self.world, x, y, width, height, parent_color, self.config.min_leaf_size
            )
            self._created += 1
            statistics.run(self.world, [eid])
            return self.world.node(eid)

    def step(self) -> StepResult:
        """Split the worst quad, or stall.

        Stalls (without touching the frontier) when no quad is splittable or
        the worst splittable quad's error is below the threshold. Stepping a
        stalled engine returns the stall result again.
        """
        with self._lock:
            statistics = self._require_loaded("step")
            worst = select_split_candidate(self.world.nodes())
            if worst is None or worst.error < self.config.error_threshold:
                self._stall(worst)
                return STALLED

            self._splitter.run(self.world, [worst.id])
            children = self._splitter.last_children
            self._created += len(children)
            statistics.run(self.world, children)

            self._last_error = worst.error
            self._history.append(worst.error)
            return StepResult(
                node=worst,
                children=tuple(self.world.node(eid) for eid in children),
            )

    def advance(self) -> StepResult | None:
        """step() if RUNNING, else None. Used by the model-update scheduler."""
        with self._lock:
            if self._state is not EngineState.RUNNING:
                return None
            return self.step()

    def snapshot(self) -> FrameSnapshot:
        """Frontier and status for a renderer."""
        with self._lock:
            return FrameSnapshot(
                nodes=tuple(self.world.nodes()),
                last_error=self._last_error,
                iterations=self.iterations,
                size=self.size,
                rounded_corner=self.config.rounded_corner,
                state=self._state,
            )

    # ---- Helpers ----
    def _stall(self, worst: QuadNode | None) -> None:
        if self._state is EngineState.STALLED:
            return
        self._state = EngineState.STALLED
        if worst is None:
            logger.info("Decomposition stalled: every quad is terminal (%d splits)", self.iterations)
        else:
            logger.info(
                "Decomposition stalled: worst error %.5g below threshold %.5g (%d splits)",
                worst.error, self.config.error_threshold, self.iterations,
            )

    def _require_loaded(self, operation: str) -> RegionStatistics:
        if self._statistics is None:
            raise EngineStateError(f"{operation}() needs an image; call reset(image) first")
        return self._statistics

    def __repr__(self) -> str:
        return (
            f"DecompositionEngine(state={self._state.value}, shapes={len(self.world)}, "
            f"iterations={self.iterations})"
        )
