"""Pixel sampling over the working image.

The working image is the decoded input scaled down to fit a maximum bound,
so that sampling a region never costs more than that bound allows. Regions
are addressed with fractional coordinates; the sampler converts them to a
pixel window the same way a 2D canvas ``getImageData`` call converts its
arguments (each one truncated toward zero).
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from PIL import Image

from quadart.core.arena import TensorRef
from quadart.core.world import World
from quadart.errors import InvalidRegionError


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_working_size(width: int, height: int, bound: int) -> tuple[int, int]:
    """Scale (width, height) down to fit within bound x bound, keeping aspect ratio.

    Sizes already inside the bound are returned unchanged; the image is never
    scaled up.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    if bound <= 0:
        raise ValueError(f"bound must be positive, got {bound}")

    scale = min(bound / width, bound / height)
    if scale >= 1.0:
        return width, height
    return (
        max(1, min(bound, _round_half_up(width * scale))),
        max(1, min(bound, _round_half_up(height * scale))),
    )


def as_rgb_array(image: Any) -> np.ndarray:
    """Normalize a decoded image to an (H, W, 3) uint8 array.

    Accepts a PIL image (any mode) or a uint8 array shaped (H, W),
    (H, W, 3) or (H, W, 4). Alpha is dropped.

    Raises:
        ValueError: If the array has an unsupported shape or dtype
    """
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGB"), dtype=np.uint8)

    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    elif arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(
            f"Expected image with shape (H, W), (H, W, 3) or (H, W, 4), got {arr.shape}"
        )
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError(f"Image must not be empty, got shape {arr.shape}")
    return np.ascontiguousarray(arr[:, :, :3])


def to_working_image(image: Any, bound: int) -> np.ndarray:
    """Decoded image -> (H, W, 3) uint8 working image fitting within bound."""
    rgb = as_rgb_array(image)
    height, width = rgb.shape[:2]
    new_width, new_height = fit_working_size(width, height, bound)
    if (new_width, new_height) == (width, height):
        return rgb.copy()

    resized = Image.fromarray(rgb).resize(
        (new_width, new_height), Image.Resampling.BILINEAR
    )
    return np.asarray(resized, dtype=np.uint8)


class PixelSampler:
    """Returns the RGB samples under a rectangle of the world's working image.

    Attributes:
        image: TensorRef of the working image (H, W, 3)
    """

    def __init__(self, world: World, image: TensorRef | None = None):
        if image is None:
            image = world.image
        if image is None:
            raise ValueError("World has no working image loaded")
        self._world = world
        self.image = image

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]

    def window(self, x: float, y: float, w: float, h: float) -> tuple[int, int, int, int]:
        """Pixel bounds (x0, y0, x1, y1) sampled for a region.

        Each argument is truncated toward zero; the window is at least one
        pixel wide and tall and is clipped to the image.

        Raises:
            InvalidRegionError: If w or h is not positive, or the region lies
                outside the image
        """
        if not (w > 0 and h > 0):
            raise InvalidRegionError(f"Region size must be positive, got {w}x{h}")
        if x < 0 or y < 0:
            raise InvalidRegionError(f"Region origin must be non-negative, got ({x}, {y})")

        x0, y0 = int(x), int(y)
        if x0 >= self.width or y0 >= self.height:
            raise InvalidRegionError(
                f"Region at ({x}, {y}) lies outside the {self.width}x{self.height} image"
            )
        x1 = min(self.width, x0 + max(1, int(w)))
        y1 = min(self.height, y0 + max(1, int(h)))
        return x0, y0, x1, y1

    def sample(self, x: float, y: float, w: float, h: float) -> np.ndarray:
        """Flat (N, 3) uint8 samples for the region, row-major."""
        x0, y0, x1, y1 = self.window(x, y, w, h)
        ref = self.image.window(y0, y1, x0, x1)
        return self._world.arena.view(ref).reshape(-1, 3)
