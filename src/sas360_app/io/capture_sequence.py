"""Yaw-guided rotational capture and capture-folder discovery.

A handheld 360 capture is taken by rotating on the spot and shooting at eight
target headings 45 degrees apart. ``RotationCapture`` tracks the device yaw
relative to the first reading, decides when a shot is allowed, and hands the
frames to the stitcher ordered by heading.

Capture folders written by the app hold the frames plus an optional
``*_angles.csv`` with ``filename,yaw_deg`` rows. The parser is strict so a
folder either loads completely or fails with file and line context.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import csv
import math
from pathlib import Path
from typing import Optional

import numpy as np
from loguru import logger

from ..stitching import concatenate_strip, stitch_360_images, stitch_images
from .loader import IMAGE_SUFFIXES

TARGET_ANGLES_DEG: tuple[float, ...] = (0.0, 45.0, 90.0, 135.0, 180.0, 225.0, 270.0, 315.0)
ALIGNMENT_THRESHOLD_DEG = 15.0
CAPTURED_THRESHOLD_DEG = 25.0
FULL_ROTATION_MIN_FRAMES = 4


def normalize_yaw(raw_yaw_rad: float, reference_deg: float = 0.0) -> float:
    """Convert device attitude yaw to degrees in ``[0, 360)`` from a reference.

    The attitude yaw grows counter-clockwise, so it is negated to make turning
    right increase the heading.
    """
    yaw = -math.degrees(raw_yaw_rad) - reference_deg
    yaw %= 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if yaw >= 360.0 else yaw


def angular_difference(a_deg: float, b_deg: float) -> float:
    """Shortest absolute distance between two headings in degrees."""
    diff = abs(a_deg - b_deg) % 360.0
    return min(diff, 360.0 - diff)


@dataclass(slots=True, frozen=True)
class CapturedFrame:
    """One shot of a rotational capture."""

    image: np.ndarray
    yaw_deg: float


@dataclass(slots=True)
class RotationCapture:
    """State of an in-progress rotational capture."""

    target_angles: tuple[float, ...] = TARGET_ANGLES_DEG
    alignment_threshold_deg: float = ALIGNMENT_THRESHOLD_DEG
    captured_threshold_deg: float = CAPTURED_THRESHOLD_DEG
    reference_yaw_deg: Optional[float] = None
    current_yaw_deg: float = 0.0
    frames: list[CapturedFrame] = field(default_factory=list)

    def update_attitude(self, raw_yaw_rad: float) -> float:
        """Feed a device attitude reading; the first one sets the reference."""
        if self.reference_yaw_deg is None:
            self.reference_yaw_deg = -math.degrees(raw_yaw_rad)
        self.current_yaw_deg = normalize_yaw(raw_yaw_rad, self.reference_yaw_deg)
        return self.current_yaw_deg

    @property
    def captured_count(self) -> int:
        return len(self.frames)

    @property
    def captured_angles(self) -> list[float]:
        return [frame.yaw_deg for frame in self.frames]

    def is_aligned(self) -> bool:
        return any(
            angular_difference(self.current_yaw_deg, target) < self.alignment_threshold_deg
            for target in self.target_angles
        )

    def is_current_position_captured(self) -> bool:
        return any(
            angular_difference(self.current_yaw_deg, captured) < self.captured_threshold_deg
            for captured in self.captured_angles
        )

    def can_capture(self) -> bool:
        if not self.frames:
            return self.is_aligned()
        return self.is_aligned() and not self.is_current_position_captured()

    def add_frame(self, image: np.ndarray) -> Optional[CapturedFrame]:
        """Record a frame at the current heading if a shot is allowed here."""
        if not self.can_capture():
            logger.debug("Ignoring frame at yaw {:.1f}: not aligned or already captured", self.current_yaw_deg)
            return None
        frame = CapturedFrame(image=image, yaw_deg=self.current_yaw_deg)
        self.frames.append(frame)
        logger.info("Captured frame {} at yaw {:.1f}", self.captured_count, frame.yaw_deg)
        return frame

    def ordered_images(self) -> list[np.ndarray]:
        """Frames sorted by heading, the order the stitcher expects."""
        return [frame.image for frame in sorted(self.frames, key=lambda item: item.yaw_deg)]

    @property
    def can_stitch(self) -> bool:
        return self.captured_count >= 2

    @property
    def is_complete(self) -> bool:
        return all(
            any(angular_difference(target, captured) < self.captured_threshold_deg for captured in self.captured_angles)
            for target in self.target_angles
        )

    def create_panorama(self, strip_fallback: bool = False) -> Optional[np.ndarray]:
        """Stitch the captured frames, optionally falling back to a plain strip."""
        if not self.can_stitch:
            logger.warning("Need at least 2 captured frames, have {}", self.captured_count)
            return None

        images = self.ordered_images()
        if len(images) >= FULL_ROTATION_MIN_FRAMES:
            result = stitch_360_images(images)
        else:
            result = stitch_images(images)

        if result is None and strip_fallback:
            logger.info("Falling back to side-by-side strip of {} frames", len(images))
            result = concatenate_strip(images)
        return result

    def reset(self) -> None:
        self.frames.clear()
        self.reference_yaw_deg = None
        self.current_yaw_deg = 0.0


@dataclass(slots=True, frozen=True)
class CaptureFrameRecord:
    """File and heading of one frame in a capture folder."""

    image_path: Path
    yaw_deg: Optional[float] = None


@dataclass(slots=True, frozen=True)
class CaptureFolder:
    """Representation of a capture folder on disk."""

    root: Path
    angles_path: Optional[Path]
    frames: tuple[CaptureFrameRecord, ...]

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def image_paths(self) -> list[Path]:
        return [frame.image_path for frame in self.frames]


def discover_capture_folder(path: Path) -> CaptureFolder:
    """Discover the frames of a capture folder in stitching order.

    Parameters
    ----------
    path:
        Directory holding the captured frames.

    Returns
    -------
    CaptureFolder
        Frames ordered by heading when an angles file is present, otherwise by
        filename.

    Raises
    ------
    FileNotFoundError
        If the folder, or a frame referenced by the angles file, is missing.
    ValueError
        If the angles file is malformed or the folder holds no frames.
    """
    root = path.expanduser().resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Capture folder does not exist: {root}")

    angles_path = _find_optional(root, "*_angles.csv")
    if angles_path is not None:
        frames = _parse_angles(angles_path, root)
    else:
        frames = [
            CaptureFrameRecord(image_path=candidate)
            for candidate in sorted(root.iterdir())
            if candidate.is_file() and candidate.suffix.lower() in IMAGE_SUFFIXES
        ]

    if not frames:
        raise ValueError(f"No capture frames found in {root}")

    logger.info(
        "Discovered capture folder: root={}, frames={}, angles={}",
        root,
        len(frames),
        angles_path.name if angles_path is not None else "none",
    )
    return CaptureFolder(root=root, angles_path=angles_path, frames=tuple(frames))


def _find_optional(directory: Path, pattern: str) -> Optional[Path]:
    candidates = sorted(directory.glob(pattern))
    if not candidates:
        return None
    if len(candidates) > 1:
        raise ValueError(f"Expected one file matching {pattern} in {directory}, found {len(candidates)}")
    return candidates[0]


def _parse_angles(angles_path: Path, root: Path) -> list[CaptureFrameRecord]:
    required_columns = {"filename", "yaw_deg"}
    with angles_path.open("r", encoding="utf-8", newline="") as stream:
        reader = csv.DictReader(stream)
        header = set(reader.fieldnames or [])
        missing = sorted(required_columns - header)
        if missing:
            raise ValueError(f"{angles_path.name} is missing required columns: {', '.join(missing)}")

        rows: list[CaptureFrameRecord] = []
        for line_no, row in enumerate(reader, start=2):
            image_name = (row.get("filename") or "").strip()
            if not image_name:
                raise ValueError(f"{angles_path.name}:{line_no} has empty filename")
            image_path = root / image_name
            if not image_path.exists():
                raise FileNotFoundError(f"{angles_path.name}:{line_no} references missing image {image_path}")
            yaw = _to_float(row, "yaw_deg", angles_path, line_no) % 360.0
            rows.append(CaptureFrameRecord(image_path=image_path.resolve(), yaw_deg=yaw))

    rows.sort(key=lambda item: item.yaw_deg)
    return rows


def _to_float(row: dict[str, str], key: str, source: Path, line_no: int) -> float:
    raw = (row.get(key) or "").strip()
    if not raw:
        raise ValueError(f"{source.name}:{line_no} has empty value for {key}")
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{source.name}:{line_no} has invalid float for {key}: {raw}") from exc
    if not math.isfinite(value):
        raise ValueError(f"{source.name}:{line_no} has non-finite value for {key}: {raw}")
    return value
