"""Fidelity metrics for a decomposition.

Compares the rasterized frontier with the working image using scikit-image.
The numbers are informational; the engine never reads them.
"""

from __future__ import annotations

import numpy as np
from skimage.metrics import mean_squared_error, peak_signal_noise_ratio

from quadart.engine import FrameSnapshot
from quadart.render import rasterize


def _rasterize_like(snapshot: FrameSnapshot, image: np.ndarray) -> np.ndarray:
    recon = rasterize(snapshot)
    if recon.shape != image.shape:
        raise ValueError(
            f"Shape mismatch: snapshot {recon.shape} vs image {image.shape}"
        )
    return recon


def approximation_mse(snapshot: FrameSnapshot, image: np.ndarray) -> float:
    """Mean squared error between the rasterized snapshot and image (uint8 RGB)."""
    recon = _rasterize_like(snapshot, image)
    return float(mean_squared_error(image, recon))


def approximation_psnr(snapshot: FrameSnapshot, image: np.ndarray) -> float:
    """PSNR in dB of the rasterized snapshot against image; inf when identical."""
    recon = _rasterize_like(snapshot, image)
    if np.array_equal(recon, image):
        return float("inf")
    return float(peak_signal_noise_ratio(image, recon, data_range=255))
