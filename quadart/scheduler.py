"""Model-update and view-update drivers for a DecompositionEngine.

Two independent periodic tasks share one engine:

- StepScheduler performs exactly one step per tick, so the decomposition
  rate is set by the tick interval rather than by CPU speed.
- RenderScheduler hands a snapshot of the frontier to a renderer callback
  on a coarser interval.

Both run on daemon threads and stop re-arming once the engine is no longer
running (paused or stalled) or once they are cancelled. The engine's lock
makes every step atomic with respect to snapshots, so a renderer never sees a
half-split frontier. Cancellation is cooperative: a tick in progress always
completes.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

from quadart.engine import DecompositionEngine, EngineState, FrameSnapshot

logger = logging.getLogger(__name__)

Renderer = Callable[[FrameSnapshot], None]


class PeriodicTask(ABC):
    """Background thread calling tick() every interval seconds.

    Attributes:
        engine: Engine driven or observed by the task
        interval: Seconds to wait between ticks
        ticks: Completed ticks since the last start()
        failure: Exception that ended the loop, if any
    """

    def __init__(self, engine: DecompositionEngine, interval: float, name: str):
        if interval < 0:
            raise ValueError(f"interval must be non-negative, got {interval}")
        self.engine = engine
        self.interval = interval
        self.name = name
        self.ticks = 0
        self.failure: Exception | None = None
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    @abstractmethod
    def tick(self) -> bool:
        """Do one unit of work. Return False to stop re-arming."""

    def start(self) -> None:
        """Start the loop on a new thread (no-op if already running)."""
        if self.is_alive():
            return
        self.ticks = 0
        self.failure = None
        self._cancelled.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop to exit. Returns True if it has."""
        if self._thread is not None:
            self._thread.join(timeout)
        return not self.is_alive()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        try:
            while not self._cancelled.is_set():
                rearm = self.tick()
                self.ticks += 1
                if not rearm:
                    break
                if self._cancelled.wait(self.interval):
                    break
        except Exception as exc:
            self.failure = exc
            logger.exception("%s stopped after an error", self.name)
        else:
            logger.debug("%s quiesced after %d ticks", self.name, self.ticks)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(interval={self.interval}, "
            f"alive={self.is_alive()}, ticks={self.ticks})"
        )


class StepScheduler(PeriodicTask):
    """Model-update task: one engine step per tick while the engine runs."""

    def __init__(self, engine: DecompositionEngine, interval: float | None = None):
        if interval is None:
            interval = engine.config.step_interval
        super().__init__(engine, interval, name="quadart-step")

    def tick(self) -> bool:
        result = self.engine.advance()
        return result is not None and not result.stalled


class RenderScheduler(PeriodicTask):
    """View-update task: hands frontier snapshots to a renderer.

    Once the engine is no longer running, the snapshot of that tick is the
    last one delivered, so the final state of a run is always rendered.
    """

    def __init__(
        self,
        engine: DecompositionEngine,
        renderer: Renderer,
        interval: float | None = None,
    ):
        if interval is None:
            interval = engine.config.render_interval
        super().__init__(engine, interval, name="quadart-render")
        self.renderer = renderer
        self.last_snapshot: FrameSnapshot | None = None

    def tick(self) -> bool:
        snapshot = self.engine.snapshot()
        self.renderer(snapshot)
        self.last_snapshot = snapshot
        return snapshot.state is EngineState.RUNNING
