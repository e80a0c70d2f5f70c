"""High-level API: load an image, decompose it, or drive a live session.

Provides:
- load_image(): decode an image file with Pillow
- decompose(): run a decomposition to completion (or a step budget) and
  return the final frame
- QuadArtSession: an engine plus its model-update and view-update schedulers
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from quadart.config import QuadArtConfig
from quadart.engine import DecompositionEngine, FrameSnapshot
from quadart.scheduler import Renderer, RenderScheduler, StepScheduler

logger = logging.getLogger(__name__)


def load_image(file_path: str | Path) -> np.ndarray:
    """Load an image from disk as an (H, W, 3) uint8 RGB array.

    Raises:
        FileNotFoundError: If the path does not exist or is not a file
        ValueError: If the file is not a recognizable image
    """
    path = Path(file_path)
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")

    try:
        with Image.open(path) as img:
            rgb = img.convert("RGB")
    except UnidentifiedImageError as exc:
        raise ValueError(f"Not an image file: {path}") from exc

    logger.debug("Loaded %s (%dx%d)", path, rgb.width, rgb.height)
    return np.asarray(rgb, dtype=np.uint8)


def decompose(
    image: Any,
    config: QuadArtConfig | None = None,
    max_steps: int | None = None,
) -> FrameSnapshot:
    """Decompose image synchronously and return the final frame.

    Args:
        image: Decoded image (PIL image or uint8 array)
        config: Decomposition parameters (defaults if None)
        max_steps: Stop after this many steps even if the engine has not
            stalled; None runs until it stalls

    Returns:
        Snapshot of the final frontier

    Example:
        >>> frame = decompose(img, QuadArtConfig(min_leaf_size=8, error_threshold=200))
        >>> print(frame.status_line())
    """
    if max_steps is not None and max_steps < 0:
        raise ValueError(f"max_steps must be non-negative, got {max_steps}")

    engine = DecompositionEngine(config)
    engine.reset(image)
    engine.start()
    steps = 0
    while max_steps is None or steps < max_steps:
        if engine.step().stalled:
            break
        steps += 1
    engine.stop()
    return engine.snapshot()


class QuadArtSession:
    """Live decomposition: an engine driven by a StepScheduler and observed
    by a RenderScheduler that feeds renderer.

    Example:
        >>> session = QuadArtSession(img, renderer=lambda frame: print(frame.status_line()))
        >>> session.start()
        >>> session.wait(timeout=30)
    """

    def __init__(
        self,
        image: Any,
        renderer: Renderer,
        config: QuadArtConfig | None = None,
    ):
        self.engine = DecompositionEngine(config)
        self.engine.reset(image)
        self.renderer = renderer
        self.stepper = StepScheduler(self.engine)
        self.painter = RenderScheduler(self.engine, renderer)

    @property
    def running(self) -> bool:
        return self.engine.running

    def start(self) -> None:
        """Resume (or begin) decomposing and rendering.

        Schedulers cancelled by stop() are replaced with fresh ones; their
        threads may still be finishing a tick.
        """
        self.engine.start()
        if self.stepper.cancelled:
            self.stepper = StepScheduler(self.engine)
        if self.painter.cancelled:
            self.painter = RenderScheduler(self.engine, self.renderer)
        self.painter.start()
        self.stepper.start()

    def stop(self, timeout: float | None = None) -> None:
        """Pause: both schedulers finish their current tick and exit."""
        self.engine.stop()
        self.stepper.cancel()
        self.painter.cancel()
        self.stepper.join(timeout)
        self.painter.join(timeout)

    def restart(self, config: QuadArtConfig | None = None) -> None:
        """Discard the current decomposition and start over, optionally with a new config."""
        self.stop()
        self.engine.restart(config)
        self.stepper = StepScheduler(self.engine)
        self.painter = RenderScheduler(self.engine, self.renderer)
        self.painter.start()
        self.stepper.start()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until both schedulers have quiesced.

        Returns:
            True if both finished within timeout

        Raises:
            Exception: The error that stopped either scheduler, if any
        """
        finished = self.stepper.join(timeout) and self.painter.join(timeout)
        for task in (self.stepper, self.painter):
            if task.failure is not None:
                raise task.failure
        return finished

    def snapshot(self) -> FrameSnapshot:
        return self.engine.snapshot()
