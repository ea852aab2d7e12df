"""Equirectangular canvas fitting and quick strip composites."""
from __future__ import annotations

from typing import Optional, Sequence

import cv2
import numpy as np


def to_rgb(image: np.ndarray) -> Optional[np.ndarray]:
    """Return a 3-channel RGB view of a gray, RGB or RGBA frame, or None if unsupported."""
    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.ndim != 3:
        return None
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
    if image.shape[2] == 3:
        return image
    return None


def is_equirectangular(image: np.ndarray, tolerance: float = 0.08) -> bool:
    """Return True when the image has the 2:1 aspect of a full sphere."""
    height, width = image.shape[:2]
    if height == 0:
        return False
    return abs(width / float(height) - 2.0) <= tolerance


def fit_equirectangular(image: np.ndarray) -> np.ndarray:
    """Place a stitched rotational strip on a 2:1 equirectangular canvas.

    The strip is assumed to span the full horizontal circle, so the canvas is
    as wide as the strip (or twice its height if it is unusually tall) and the
    strip is centred on the horizon. Uncovered latitudes stay black.
    """
    height, width = image.shape[:2]
    target_width = max(width, 2 * height)
    target_width += target_width % 2
    target_height = target_width // 2
    if (target_width, target_height) == (width, height):
        return image

    canvas = np.zeros((target_height, target_width) + image.shape[2:], dtype=image.dtype)
    top = (target_height - height) // 2
    left = (target_width - width) // 2
    canvas[top : top + height, left : left + width] = image
    return canvas


def concatenate_strip(images: Sequence[np.ndarray], max_height: int = 600) -> Optional[np.ndarray]:
    """Lay frames side by side as a preview when feature stitching is not wanted.

    Frames are converted to RGB, then scaled down (never up) to ``max_height``.
    The canvas takes its height from the first frame; taller frames are cropped
    at the bottom.
    """
    scaled: list[np.ndarray] = []
    for image in images:
        if image is None or image.size == 0:
            continue
        image = to_rgb(image)
        if image is None:
            continue
        height, width = image.shape[:2]
        scale = max_height / float(height)
        if scale < 1.0:
            new_size = (max(1, int(round(width * scale))), max_height)
            image = cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
        scaled.append(image)

    if not scaled:
        return None

    first = scaled[0]
    canvas_height = first.shape[0]
    canvas_width = sum(img.shape[1] for img in scaled)
    canvas = np.zeros((canvas_height, canvas_width) + first.shape[2:], dtype=first.dtype)

    x_offset = 0
    for img in scaled:
        rows = min(canvas_height, img.shape[0])
        canvas[:rows, x_offset : x_offset + img.shape[1]] = img[:rows]
        x_offset += img.shape[1]
    return canvas
