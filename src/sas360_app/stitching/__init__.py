"""Panorama stitching entry points."""

from .projection import concatenate_strip, fit_equirectangular, is_equirectangular
from .stitcher import (
    PANORAMA_SETTINGS,
    SPHERICAL_SETTINGS,
    StitchMode,
    StitchSettings,
    StitchStatus,
    prepare_images,
    stitch_360_images,
    stitch_images,
)

__all__ = [
    "PANORAMA_SETTINGS",
    "SPHERICAL_SETTINGS",
    "StitchMode",
    "StitchSettings",
    "StitchStatus",
    "concatenate_strip",
    "fit_equirectangular",
    "is_equirectangular",
    "prepare_images",
    "stitch_360_images",
    "stitch_images",
]
