"""Color statistics for quad regions.

Each quad is summarized by the mean color of its pixels and by a
luma-weighted error of those pixels against that mean:

    error = sqrt(sum over pixels of 0.2989*dR^2 + 0.5870*dG^2 + 0.1140*dB^2)

The error is summed over the region, not averaged, so a large inaccurate
region outranks a small one with the same per-pixel deviation.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from quadart.components.quad import Color, Fidelity, Fill, Region
from quadart.core.sampler import PixelSampler
from quadart.core.system import System
from quadart.core.world import World

LUMA_WEIGHTS = np.array([0.2989, 0.5870, 0.1140], dtype=np.float64)


def _as_samples(samples: Any) -> np.ndarray:
    arr = np.asarray(samples, dtype=np.float64)
    if arr.ndim == 1 and arr.size in (3, 4):
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] not in (3, 4):
        raise ValueError(f"Expected samples shaped (N, 3) or (N, 4), got {arr.shape}")
    return arr[:, :3]


def average_color(samples: Any) -> Color:
    """Per-channel mean of RGB samples, each channel rounded to the nearest integer.

    Halves round up.

    Raises:
        ValueError: If samples is empty
    """
    arr = _as_samples(samples)
    if arr.shape[0] == 0:
        raise ValueError("Cannot average an empty sample set")

    mean = arr.sum(axis=0) / arr.shape[0]
    r, g, b = (int(c) for c in np.floor(mean + 0.5))
    return (r, g, b)


def color_error(samples: Any, reference: Color) -> float:
    """Luma-weighted root of summed squared channel errors against reference."""
    arr = _as_samples(samples)
    diff = arr - np.asarray(reference, dtype=np.float64)
    total = float(((diff * diff) @ LUMA_WEIGHTS).sum())
    return float(np.sqrt(total))


class RegionStatistics(System):
    """Attach Fill and Fidelity to quads that only have a Region so far.

    - Input: Region component
    - Output: Fill (mean color) and Fidelity (error against the mean)
    """

    def __init__(self, sampler: PixelSampler):
        self.sampler = sampler

    def required_components(self) -> list[type]:
        return [Region]

    def produced_components(self) -> list[type]:
        return [Fill, Fidelity]

    def run(self, world: World, eids: list[int]) -> None:
        for eid in eids:
            region = world.get_component(eid, Region)
            samples = self.sampler.sample(region.x, region.y, region.width, region.height)

            avg = average_color(samples)
            world.add_component(eid, Fill(color=avg))
            world.add_component(eid, Fidelity(error=color_error(samples, avg)))
