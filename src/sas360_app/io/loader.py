"""File loading and saving for capture frames and stitched panoramas."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable

import cv2
import numpy as np
from loguru import logger

IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".tif", ".tiff", ".bmp", ".webp"})


def load_capture_image(path: Path) -> np.ndarray:
    """Load a captured frame as an RGB uint8 array."""
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Unable to read capture image: {path}")
    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    logger.debug("Loaded capture image {} with shape {}", path, image.shape)
    return image


def load_capture_images(paths: Iterable[Path]) -> list[np.ndarray]:
    """Load frames in the given order."""
    return [load_capture_image(Path(path)) for path in paths]


def save_panorama(path: Path, image: np.ndarray) -> Path:
    """Write an RGB panorama to disk, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if image.ndim == 3 and image.shape[2] == 3:
        encoded = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    else:
        encoded = image
    try:
        written = cv2.imwrite(str(path), encoded)
    except cv2.error as exc:
        raise OSError(f"Unable to write panorama image: {path}") from exc
    if not written:
        raise OSError(f"Unable to write panorama image: {path}")
    logger.info("Saved panorama {} ({}x{})", path, image.shape[1], image.shape[0])
    return path
