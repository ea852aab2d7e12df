"""Command line entry point for stitching captured frames."""
from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys
from typing import Optional

import numpy as np
from loguru import logger
from PyQt6.QtCore import QCoreApplication

from .io.capture_sequence import discover_capture_folder
from .io.loader import load_capture_images, save_panorama
from .logging import configure_logging
from .stitching import (
    PANORAMA_SETTINGS,
    SPHERICAL_SETTINGS,
    StitchMode,
    StitchSettings,
    concatenate_strip,
    is_equirectangular,
    stitch_360_images,
    stitch_images,
)
from .workers.task_runner import StitchTask, TaskRunner

EXIT_OK = 0
EXIT_STITCH_FAILED = 1
EXIT_BAD_INPUT = 2
EXIT_OUTPUT_FAILED = 3

MODES = ("panorama", "scans", "360")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sas360-stitch",
        description="Stitch overlapping capture frames into a panorama.",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Frames in capture order, or a single capture folder.",
    )
    parser.add_argument("-o", "--output", type=Path, default=Path("panorama.jpg"))
    parser.add_argument("--mode", choices=MODES, default="panorama")
    parser.add_argument("--max-dimension", type=int, default=None, help="Downsize frames above this size.")
    parser.add_argument("--confidence", type=float, default=None, help="Pairwise match confidence threshold.")
    parser.add_argument(
        "--strip-fallback",
        action="store_true",
        help="Write a side-by-side strip if feature stitching fails.",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def resolve_settings(mode: str, max_dimension: Optional[int], confidence: Optional[float]) -> StitchSettings:
    """Start from the preset for ``mode`` and apply command line overrides."""
    settings = SPHERICAL_SETTINGS if mode == "360" else PANORAMA_SETTINGS
    overrides: dict[str, float | int] = {}
    if max_dimension is not None:
        overrides["max_dimension"] = max_dimension
    if confidence is not None:
        overrides["confidence_threshold"] = confidence
    return replace(settings, **overrides) if overrides else settings


def resolve_input_paths(inputs: list[Path]) -> list[Path]:
    if len(inputs) == 1 and inputs[0].is_dir():
        return discover_capture_folder(inputs[0]).image_paths
    return inputs


def run_stitch(
    images: list[np.ndarray],
    mode: str,
    settings: StitchSettings,
    strip_fallback: bool = False,
) -> Optional[np.ndarray]:
    """Stitch according to the command line mode; ``None`` on failure."""
    if mode == "360":
        result = stitch_360_images(images, settings)
    else:
        stitch_mode = StitchMode.SCANS if mode == "scans" else StitchMode.PANORAMA
        result = stitch_images(images, stitch_mode, settings)

    if result is None and strip_fallback:
        logger.info("Falling back to side-by-side strip")
        result = concatenate_strip(images)
    return result


def main(argv: Optional[list[str]] = None) -> int:
    """Stitch frames named on the command line and write the result."""
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level)

    try:
        paths = resolve_input_paths(args.inputs)
        images = load_capture_images(paths)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("{}", exc)
        return EXIT_BAD_INPUT

    settings = resolve_settings(args.mode, args.max_dimension, args.confidence)
    app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])

    def _on_finished(panorama: np.ndarray) -> None:
        try:
            save_panorama(args.output, panorama)
        except OSError as exc:
            logger.error("{}", exc)
            app.exit(EXIT_OUTPUT_FAILED)
            return
        if args.mode == "360" and not is_equirectangular(panorama):
            logger.warning("Result is not 2:1; spherical viewers may distort it")
        app.exit(EXIT_OK)

    def _on_failed(message: str) -> None:
        logger.error("{}", message)
        app.exit(EXIT_STITCH_FAILED)

    task = StitchTask(run_stitch, images, args.mode, settings, strip_fallback=args.strip_fallback)
    task.signals.finished.connect(_on_finished)
    task.signals.failed.connect(_on_failed)
    TaskRunner().submit(task)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
