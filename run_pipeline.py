#!/usr/bin/env python3
"""
run_pipeline.py – FAST Corner Detection Pipeline

Loads configuration from configs/default.yaml (or a user-specified file),
runs the FAST detector on every scene defined in the config, and writes the
visualisations to the results directory.  With no scenes configured (or with
--random) the detector runs on a uniform-noise demo image.

Usage
-----
    python run_pipeline.py
    python run_pipeline.py --config configs/default.yaml
    python run_pipeline.py --scenes building chessboard
    python run_pipeline.py --random 64x64 --seed 0
    python run_pipeline.py --threshold 20 --no-suppression
"""

import argparse
import logging
import os
import sys
import time

import numpy as np

# Ensure the project root is on the Python path when invoked directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fastcorners.config import DetectorConfig, load_config
from fastcorners.detectors.fast import FastDetector, keypoints_to_array
from fastcorners.errors import FastError
from fastcorners.utils.image_io import (
    ensure_output_dirs,
    load_grayscale,
    random_image,
)
from fastcorners.utils.visualization import save_fast_corners, save_score_histogram


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def banner(text: str) -> None:
    width = 60
    print("\n" + "─" * width)
    print(f"  {text}")
    print("─" * width)


def parse_size(text: str):
    """Parse ``WIDTHxHEIGHT`` into a (width, height) tuple."""
    try:
        w, h = text.lower().split("x")
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected WIDTHxHEIGHT, e.g. 64x64, got {text!r}") from None


def build_config(cfg: dict, args) -> DetectorConfig:
    """Merge the ``fast:`` config section with command-line overrides."""
    config = DetectorConfig.from_dict(cfg.get("fast"))
    overrides = {}
    if args.threshold is not None:
        overrides["threshold"] = args.threshold
    if args.arc_length is not None:
        overrides["arc_length"] = args.arc_length
    if args.no_pruning:
        overrides["enable_pruning"] = False
    if args.no_suppression:
        overrides["enable_suppression"] = False
    if args.workers is not None:
        overrides["workers"] = args.workers
    return config.replace(**overrides) if overrides else config


# ──────────────────────────────────────────────────────────────────────────────
# Per-scene pipeline
# ──────────────────────────────────────────────────────────────────────────────

def run_scene(name: str, gray: np.ndarray, detector: FastDetector,
              results_dir: str, plots: bool, marker_size: int = 6) -> dict:
    """Detect corners in a single image and return summary metrics."""
    banner(f"Scene: {name}")
    print(f"  Image  {gray.shape[1]}×{gray.shape[0]}")

    # ── 1. Segment test ───────────────────────────────────────────────────────
    print("  Stage 1 – FAST segment test")
    t0 = time.perf_counter()
    candidates = detector.candidates(gray)
    t_scan = time.perf_counter() - t0
    print(f"    {len(candidates)} candidates  ({1000 * t_scan:.1f} ms)")

    # ── 2. Non-maximal suppression ────────────────────────────────────────────
    if detector.config.enable_suppression:
        print("  Stage 2 – Non-maximal suppression")
        t0 = time.perf_counter()
        corners = detector.suppress(gray, candidates)
        t_nms = time.perf_counter() - t0
        print(f"    {len(candidates)} → {len(corners)} corners  "
              f"({1000 * t_nms:.1f} ms)")
    else:
        corners = candidates
        t_nms = 0.0

    scores = detector.scores(gray, corners)
    if plots:
        save_fast_corners(gray, keypoints_to_array(candidates),
                          keypoints_to_array(corners), name, results_dir,
                          marker_size=marker_size)
        if len(scores):
            save_score_histogram(scores, name, results_dir)

    return {
        "scene": name,
        "width": gray.shape[1],
        "height": gray.shape[0],
        "candidates": len(candidates),
        "corners": len(corners),
        "max_score": int(scores.max()) if len(scores) else None,
        "ms": 1000 * (t_scan + t_nms),
    }


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="FAST corner detection pipeline")
    p.add_argument(
        "--config", default="configs/default.yaml",
        help="Path to YAML configuration file (default: configs/default.yaml)",
    )
    p.add_argument(
        "--scenes", nargs="*", default=None,
        help="Subset of scene names to process (default: all scenes in config)",
    )
    p.add_argument(
        "--random", type=parse_size, default=None, metavar="WxH",
        help="Run on a random noise image of the given size instead of the scenes",
    )
    p.add_argument("--seed", type=int, default=None,
                   help="Seed for the random demo image")
    p.add_argument("--threshold", type=int, default=None,
                   help="Override fast.threshold")
    p.add_argument("--arc-length", type=int, default=None,
                   help="Override fast.arc_length")
    p.add_argument("--no-pruning", action="store_true",
                   help="Disable the 4-point high-speed test")
    p.add_argument("--no-suppression", action="store_true",
                   help="Disable non-maximal suppression")
    p.add_argument("--workers", type=int, default=None,
                   help="Number of row bands scanned in parallel")
    p.add_argument("--no-plots", action="store_true",
                   help="Skip writing figures")
    p.add_argument("--verbose", action="store_true",
                   help="Enable debug logging")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Load configuration
    if os.path.exists(args.config):
        cfg = load_config(args.config)
    elif args.random is not None:
        cfg = {}
    else:
        print(f"[ERROR] Config file not found: {args.config}")
        sys.exit(1)

    try:
        detector = FastDetector(build_config(cfg, args))
    except FastError as exc:
        print(f"[ERROR] {exc}")
        sys.exit(1)

    results_dir = cfg.get("results_dir", "results")
    vis_cfg = cfg.get("visualization", {})
    plots = vis_cfg.get("enabled", True) and not args.no_plots
    marker_size = vis_cfg.get("marker_size", 6)
    scenes = [] if args.random is not None else cfg.get("scenes", [])

    # Optionally restrict to a subset of scenes
    if args.scenes:
        scenes = [s for s in scenes if s["name"] in args.scenes]
        if not scenes:
            print(f"[ERROR] No matching scenes found for: {args.scenes}")
            sys.exit(1)

    # Validate that image files exist
    for sc in scenes:
        if not os.path.exists(sc["image"]):
            print(f"[ERROR] Image not found: {sc['image']}")
            sys.exit(1)

    demo = cfg.get("demo", {})
    if not scenes:
        width, height = args.random or (demo.get("width", 64), demo.get("height", 64))
        seed = args.seed if args.seed is not None else demo.get("seed")
        jobs = [(f"random_{width}x{height}", lambda: random_image(width, height, seed))]
    else:
        jobs = [(sc["name"], lambda path=sc["image"]: load_grayscale(path))
                for sc in scenes]

    if plots:
        ensure_output_dirs([name for name, _ in jobs], base=results_dir)

    banner("FAST Corner Detection Pipeline")
    print(f"  Config  : {args.config}")
    print(f"  Scenes  : {[name for name, _ in jobs]}")
    print(f"  Detector: {detector.config}")
    print(f"  Output  : {results_dir}/")

    t0 = time.time()
    all_metrics = []

    for name, load in jobs:
        try:
            metrics = run_scene(name, load(), detector, results_dir, plots,
                                marker_size=marker_size)
        except FastError as exc:
            print(f"[ERROR] {name}: {exc}")
            sys.exit(1)
        all_metrics.append(metrics)

    # ── Summary table ──────────────────────────────────────────────────────
    banner("Results Summary")
    header = f"{'Scene':<20} {'Size':>11} {'Candidates':>11} {'Corners':>9} {'MaxScore':>9} {'Time':>10}"
    print(header)
    print("─" * len(header))
    for m in all_metrics:
        size = f"{m['width']}x{m['height']}"
        best = str(m["max_score"]) if m["max_score"] is not None else "–"
        print(f"{m['scene']:<20} {size:>11} {m['candidates']:>11} "
              f"{m['corners']:>9} {best:>9} {m['ms']:>8.1f}ms")

    elapsed = time.time() - t0
    print(f"\nPipeline complete in {elapsed:.1f}s")
    if plots:
        print(f"Results saved to: {os.path.abspath(results_dir)}/")
    return all_metrics


if __name__ == "__main__":
    main()
