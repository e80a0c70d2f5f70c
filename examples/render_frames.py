#!/usr/bin/env python3
"""Render a decomposition to a sequence of PNG frames.

Loads an image, splits it step by step and writes the rasterized frontier
every --every splits, plus the final frame. Stitch the frames into a video or
GIF to watch the picture sharpen.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from PIL import Image

from quadart.api import load_image
from quadart.config import load_config
from quadart.engine import DecompositionEngine
from quadart.render import rasterize
from quadart.systems.metrics import approximation_psnr


def main() -> None:
    parser = argparse.ArgumentParser(description="Quadtree art frame renderer")
    parser.add_argument("image", type=Path, help="Input image file")
    parser.add_argument("--out", type=Path, default=Path("out"), help="Output directory")
    parser.add_argument("--every", type=int, default=50, help="Splits between frames")
    parser.add_argument("--max-steps", type=int, default=5000, help="Step budget")
    parser.add_argument("--leaf-size", type=int, default=None, help="Override min_leaf_size")
    parser.add_argument(
        "--threshold", type=float, default=None, help="Override error_threshold"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to quadart.toml (defaults to QUADART_CONFIG or ./quadart.toml)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every split")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    overrides = {}
    if args.leaf_size is not None:
        overrides["min_leaf_size"] = args.leaf_size
    if args.threshold is not None:
        overrides["error_threshold"] = args.threshold
    if overrides:
        config = config.replace(**overrides)

    engine = DecompositionEngine(config)
    engine.reset(load_image(args.image))
    engine.start()
    args.out.mkdir(parents=True, exist_ok=True)

    frame_index = 0
    for step in range(args.max_steps):
        if engine.step().stalled:
            break
        if step % args.every == 0:
            Image.fromarray(rasterize(engine.snapshot())).save(args.out / f"{frame_index:05d}.png")
            frame_index += 1

    final = engine.snapshot()
    Image.fromarray(rasterize(final)).save(args.out / f"{frame_index:05d}.png")
    print(final.status_line())
    print(f"PSNR: {approximation_psnr(final, engine.working_image()):.2f} dB")
    print(f"Wrote {frame_index + 1} frames to {args.out}")


if __name__ == "__main__":
    main()
