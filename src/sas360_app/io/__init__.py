"""Input/output helpers for capture frames, capture folders and panoramas."""

from .capture_sequence import CaptureFolder, CaptureFrameRecord, RotationCapture, discover_capture_folder
from .loader import load_capture_image, load_capture_images, save_panorama

__all__ = [
    "CaptureFolder",
    "CaptureFrameRecord",
    "RotationCapture",
    "discover_capture_folder",
    "load_capture_image",
    "load_capture_images",
    "save_panorama",
]
