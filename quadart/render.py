"""Reference raster renderer for frame snapshots.

Draws every quad of a snapshot as a flat rectangle. Fractional edges are
rounded to the nearest pixel; neighbouring quads share the exact same edge
value, so the rounded rectangles still tile without gaps.
"""

from __future__ import annotations

import math

import numpy as np

from quadart.components.quad import Color
from quadart.engine import FrameSnapshot


def _edge(value: float) -> int:
    return int(math.floor(value + 0.5))


def rasterize(
    snapshot: FrameSnapshot,
    background: Color = (255, 255, 255),
    use_previous_color: bool = False,
) -> np.ndarray:
    """Paint a snapshot onto an (H, W, 3) uint8 canvas of the working size.

    Args:
        snapshot: Frame to draw
        background: Color of pixels no quad covers
        use_previous_color: Paint each quad with the color it inherited from
            its parent (the start of a fade-in) instead of its own

    Raises:
        ValueError: If the snapshot has no size (engine never reset)
    """
    width, height = snapshot.size
    if width <= 0 or height <= 0:
        raise ValueError(f"Snapshot has no drawable size: {snapshot.size}")

    canvas = np.empty((height, width, 3), dtype=np.uint8)
    canvas[:] = background
    for node in snapshot.nodes:
        x0, x1 = _edge(node.x), _edge(node.x + node.width)
        y0, y1 = _edge(node.y), _edge(node.y + node.height)
        canvas[y0:y1, x0:x1] = node.previous_color if use_previous_color else node.color
    return canvas
