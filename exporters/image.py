"""
Image and per-slice volume export through the scikit-image codec.
"""

import logging
import os
from typing import List

import numpy as np
from skimage import io as skio

from config import VOLUME_EXPORT_PATTERN
from core import PixelBuffer, VolumeStack

logger = logging.getLogger(__name__)


def encode_image(path: str, buffer: np.ndarray, width: int, height: int, channels: int) -> bool:
    """
    Encode an interleaved uint8 buffer to ``path``; the format follows the
    file extension.

    Returns:
        bool: True once written, False if the codec rejected the write.
    """
    arr = np.asarray(buffer, dtype=np.uint8).reshape(height, width, channels)
    if channels == 1:
        arr = arr[:, :, 0]
    try:
        skio.imsave(path, arr, check_contrast=False)
    except (OSError, ValueError) as exc:
        logger.warning("Failed to save image %s: %s", path, exc)
        return False
    return True


def save_image(img: PixelBuffer, path: str) -> bool:
    """Write one image, creating the parent directory when needed."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    saved = encode_image(path, img.data, img.width, img.height, img.channels)
    if saved:
        logger.info("Image saved to %s", path)
    return saved


def save_volume(vol: VolumeStack, directory: str) -> List[str]:
    """
    Write every slice as ``image{i}.png`` (0-based) under ``directory``.

    Best-effort: a slice that fails to encode is logged and skipped.

    Returns:
        List of paths actually written.
    """
    os.makedirs(directory, exist_ok=True)
    written: List[str] = []
    for index, img in enumerate(vol):
        path = os.path.join(directory, VOLUME_EXPORT_PATTERN.format(index=index))
        if encode_image(path, img.data, img.width, img.height, img.channels):
            written.append(path)
    logger.info("Volume saved to %s: %d/%d slice(s) written.", directory, len(written), vol.depth)
    return written
