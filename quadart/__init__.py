"""Quadtree art: approximate an image with flat-colored rectangles.

The decomposition starts from a single quad covering the image and keeps
splitting the quad with the worst luma-weighted color error into four
quadrants, until every remaining quad is either too small to split or good
enough for the configured threshold. The frontier can be observed while it
refines, one split at a time.

Quick Start:
    >>> import numpy as np
    >>> from quadart import QuadArtConfig, decompose
    >>>
    >>> img = np.random.randint(0, 256, (256, 256, 3), dtype=np.uint8)
    >>> frame = decompose(img, QuadArtConfig(min_leaf_size=8, error_threshold=500))
    >>> print(frame.status_line())

For step-by-step control, drive the engine directly:
    >>> from quadart import DecompositionEngine
    >>>
    >>> engine = DecompositionEngine()
    >>> engine.reset(img)
    >>> engine.start()
    >>> result = engine.step()
    >>> result.node, result.children
"""

__version__ = "0.1.0"

from quadart.api import QuadArtSession, decompose, load_image
from quadart.components.quad import QuadNode
from quadart.config import QuadArtConfig, load_config
from quadart.engine import DecompositionEngine, EngineState, FrameSnapshot, StepResult
from quadart.errors import EngineStateError, InvalidRegionError, QuadArtError
from quadart.scheduler import RenderScheduler, StepScheduler

__all__ = [
    "__version__",
    "DecompositionEngine",
    "EngineState",
    "EngineStateError",
    "FrameSnapshot",
    "InvalidRegionError",
    "QuadArtConfig",
    "QuadArtError",
    "QuadArtSession",
    "QuadNode",
    "RenderScheduler",
    "StepResult",
    "StepScheduler",
    "decompose",
    "load_config",
    "load_image",
]
