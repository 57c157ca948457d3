#!/usr/bin/env python3
"""
Island worldgen -> isometric preview

Generates the tile grid once, logs the water/land/mountain split and
optionally writes an isometric render and a top-down map as PNG.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
from datetime import datetime
from typing import List, Optional

from render import IsoRenderer, apply_debug_overlay, map_image
from worldgen import ConfigError, WorldGenParams, generate_world

logger = logging.getLogger(__name__)


def setup_logger(verbose: bool = False, log_dir: Optional[str] = None,
                 log_name: str = "worldgen") -> logging.Logger:
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    if root.hasHandlers():
        root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = os.path.join(log_dir, f"{log_name}_{timestamp}.log")
        file_handler = logging.FileHandler(filename, mode="w")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        root.addHandler(file_handler)
        root.info("Logging to %s", filename)
    return root


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Generate an island tile world and render a preview")
    ap.add_argument("--width", type=int, default=128)
    ap.add_argument("--height", type=int, default=128)
    ap.add_argument("--seed", type=int, default=0, help="Offset added to every noise layer seed")
    ap.add_argument("--color-seed", type=int, default=None,
                    help="Seed for per-tile color jitter (default: fresh every run)")
    ap.add_argument("--debug-overlay", action="store_true",
                    help="Paint diagonal, border and midline marker tiles")
    ap.add_argument("--out", default=None, help="Write an isometric PNG here")
    ap.add_argument("--map", default=None, help="Write a top-down PNG here")
    ap.add_argument("--tile-w", type=int, default=32)
    ap.add_argument("--tile-h", type=int, default=16)
    ap.add_argument("--verbose", "-v", action="store_true")
    ap.add_argument("--log-dir", default=None)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(args.verbose, args.log_dir)

    try:
        p = WorldGenParams(
            width=args.width,
            height=args.height,
            seed=args.seed,
            color_seed=args.color_seed,
        )
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    world = generate_world(p)
    if args.debug_overlay:
        world = apply_debug_overlay(world)

    if args.out:
        img = IsoRenderer(world, tile_w=args.tile_w, tile_h=args.tile_h).render()
        img.save(args.out)
        logger.info("Saved %s", args.out)
    if args.map:
        map_image(world, scale=4).save(args.map)
        logger.info("Saved %s", args.map)
    return 0


if __name__ == "__main__":
    sys.exit(main())
