#!/usr/bin/env python3
"""Live session example: model updates and view updates on separate timers.

The StepScheduler splits one quad per tick while the RenderScheduler prints
the status line of each frame it receives. Press Ctrl+C to pause early.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from quadart.api import QuadArtSession, load_image
from quadart.config import QuadArtConfig
from quadart.engine import FrameSnapshot


def gradient_image(size: int) -> np.ndarray:
    """Diagonal color gradient with a dark disc, for running without a file."""
    yy, xx = np.mgrid[0:size, 0:size]
    img = np.stack([xx * 255 // size, yy * 255 // size, (xx + yy) * 127 // size], axis=-1)
    disc = (xx - size / 2) ** 2 + (yy - size / 2) ** 2 < (size / 4) ** 2
    img[disc] = (20, 20, 40)
    return img.astype(np.uint8)


def print_frame(frame: FrameSnapshot) -> None:
    print(f"[{frame.state.value:>7}] {frame.status_line()}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Quadtree art live session")
    parser.add_argument("image", type=Path, nargs="?", default=None, help="Input image file")
    parser.add_argument("--leaf-size", type=int, default=8)
    parser.add_argument("--threshold", type=float, default=300.0)
    parser.add_argument("--step-interval", type=float, default=0.001)
    parser.add_argument("--render-interval", type=float, default=0.2)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    image = load_image(args.image) if args.image else gradient_image(256)
    config = QuadArtConfig(
        min_leaf_size=args.leaf_size,
        error_threshold=args.threshold,
        step_interval=args.step_interval,
        render_interval=args.render_interval,
    )

    session = QuadArtSession(image, renderer=print_frame, config=config)
    session.start()
    try:
        while not session.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        session.stop()
        print_frame(session.snapshot())


if __name__ == "__main__":
    main()
