"""OpenCV high-level stitcher wrapper.

Every entry point accepts an ordered sequence of overlapping RGB frames and
returns either the composited panorama or ``None``. Stitching failure is a
normal outcome for handheld captures (too little overlap, blank walls), so it
is reported through the log and an absent result rather than an exception.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence

import cv2
import numpy as np
from loguru import logger

from .projection import fit_equirectangular, to_rgb


class StitchMode(IntEnum):
    """Stitcher model selection, numerically identical to ``cv2.Stitcher_*``."""

    PANORAMA = 0  # wide scenes, rotating camera
    SCANS = 1  # flat surfaces, affine motion

    @classmethod
    def from_value(cls, value: int) -> "StitchMode":
        """Map an integer selector onto a mode; anything but 0 means scans."""
        return cls.PANORAMA if int(value) == 0 else cls.SCANS


class StitchStatus(IntEnum):
    """Status codes returned by ``cv2.Stitcher.stitch``."""

    OK = 0
    ERR_NEED_MORE_IMGS = 1
    ERR_HOMOGRAPHY_EST_FAIL = 2
    ERR_CAMERA_PARAMS_ADJUST_FAIL = 3

    @property
    def hint(self) -> str:
        return _STATUS_HINTS.get(self, "")


_STATUS_HINTS = {
    StitchStatus.ERR_NEED_MORE_IMGS: "Need more images or more overlap between images",
    StitchStatus.ERR_HOMOGRAPHY_EST_FAIL: "Homography estimation failed - images may not have enough features",
    StitchStatus.ERR_CAMERA_PARAMS_ADJUST_FAIL: "Camera parameters adjustment failed",
}


@dataclass(slots=True, frozen=True)
class StitchSettings:
    """Preprocessing limits and stitcher tuning for one stitching call.

    Attributes
    ----------
    max_dimension:
        Frames whose larger side exceeds this are downsized before stitching.
    min_images:
        Minimum number of usable frames; fewer yields no result.
    confidence_threshold:
        Pairwise match confidence below which frames are dropped from the
        panorama (``setPanoConfidenceThresh``).
    wave_correction:
        Straighten the horizon of rotational captures.
    retry_with_defaults:
        Retry once with a stitcher left at library defaults if the tuned one
        fails.
    project_equirectangular:
        Place the result on a 2:1 canvas suitable for spherical viewers.
    """

    max_dimension: int = 1500
    min_images: int = 2
    confidence_threshold: float = 0.5
    wave_correction: bool = False
    retry_with_defaults: bool = False
    project_equirectangular: bool = False


PANORAMA_SETTINGS = StitchSettings()
SPHERICAL_SETTINGS = StitchSettings(
    max_dimension=1200,
    min_images=4,
    confidence_threshold=0.3,
    wave_correction=True,
    retry_with_defaults=True,
    project_equirectangular=True,
)


def prepare_images(images: Sequence[Optional[np.ndarray]], max_dimension: int) -> list[np.ndarray]:
    """Normalise frames to 3-channel RGB within ``max_dimension`` pixels."""
    prepared: list[np.ndarray] = []
    for index, image in enumerate(images):
        if image is None or image.size == 0:
            logger.warning("Skipping frame {}: image is empty", index)
            continue

        frame = to_rgb(image)
        if frame is None:
            logger.warning("Skipping frame {}: unsupported shape {}", index, image.shape)
            continue

        height, width = frame.shape[:2]
        if width > max_dimension or height > max_dimension:
            scale = max_dimension / float(max(width, height))
            frame = cv2.resize(frame, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)

        prepared.append(np.ascontiguousarray(frame))
        logger.debug("Added frame {}, size: {}x{}", len(prepared), frame.shape[1], frame.shape[0])
    return prepared


def stitch_images(
    images: Sequence[Optional[np.ndarray]],
    mode: StitchMode | int = StitchMode.PANORAMA,
    settings: Optional[StitchSettings] = None,
) -> Optional[np.ndarray]:
    """Stitch overlapping frames into a single RGB composite.

    Parameters
    ----------
    images:
        Frames in capture order; neighbours are expected to overlap.
    mode:
        ``StitchMode.PANORAMA`` (default) or ``StitchMode.SCANS``. Plain
        integers are accepted; any value other than 0 selects scans.
    settings:
        Tuning overrides, defaults to :data:`PANORAMA_SETTINGS`.

    Returns
    -------
    numpy.ndarray or None
        The stitched image, or ``None`` if stitching was not possible.
    """
    settings = settings or PANORAMA_SETTINGS
    stitch_mode = StitchMode.from_value(mode)

    if len(images) < settings.min_images:
        logger.warning("Need at least {} images to stitch, got {}", settings.min_images, len(images))
        return None

    logger.info("Starting {} stitch with {} images", stitch_mode.name.lower(), len(images))
    frames = prepare_images(images, settings.max_dimension)
    if len(frames) < settings.min_images:
        logger.warning("Not enough valid images to stitch ({} usable)", len(frames))
        return None

    result = _run_stitcher(frames, stitch_mode, settings)
    if result is None and settings.retry_with_defaults:
        logger.info("Trying fallback stitch with default settings")
        result = _run_stitcher(frames, stitch_mode, None)
        if result is None:
            logger.warning("Fallback stitch also failed")
    if result is None:
        return None

    if settings.project_equirectangular:
        result = fit_equirectangular(result)
    logger.info("Stitching successful, result size: {}x{}", result.shape[1], result.shape[0])
    return result


def stitch_360_images(
    images: Sequence[Optional[np.ndarray]],
    settings: Optional[StitchSettings] = None,
) -> Optional[np.ndarray]:
    """Stitch a full rotational capture into an equirectangular panorama."""
    return stitch_images(images, StitchMode.PANORAMA, settings or SPHERICAL_SETTINGS)


def _create_stitcher(mode: StitchMode, settings: Optional[StitchSettings]) -> cv2.Stitcher:
    stitcher = cv2.Stitcher_create(int(mode))
    if settings is None:
        return stitcher

    stitcher.setPanoConfidenceThresh(settings.confidence_threshold)
    if settings.wave_correction:
        # horizontal is the library default wave kind
        stitcher.setWaveCorrection(True)
    return stitcher


def _run_stitcher(
    frames: list[np.ndarray],
    mode: StitchMode,
    settings: Optional[StitchSettings],
) -> Optional[np.ndarray]:
    """Run one stitcher pass; ``settings=None`` leaves the library defaults."""
    try:
        stitcher = _create_stitcher(mode, settings)
    except (cv2.error, AttributeError, TypeError) as exc:
        logger.error("Unable to configure stitcher: {}", exc)
        return None

    try:
        raw_status, panorama = stitcher.stitch(frames)
    except cv2.error as exc:
        logger.error("Stitcher raised an OpenCV error: {}", exc)
        return None

    try:
        status = StitchStatus(int(raw_status))
    except ValueError:
        logger.warning("Stitching failed with unknown status: {}", raw_status)
        return None

    if status != StitchStatus.OK:
        logger.warning("Stitching failed with status: {} ({})", int(status), status.name)
        if status.hint:
            logger.warning(status.hint)
        return None

    if panorama is None or panorama.size == 0:
        logger.warning("Stitcher reported success but returned an empty image")
        return None
    return np.ascontiguousarray(panorama)
