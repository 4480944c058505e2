"""
Single image loading through the scikit-image codec.
"""

import logging
import os
from typing import Callable, Optional, Tuple

import numpy as np
from skimage import io as skio
from skimage.util import img_as_ubyte

from core import BaseLoader, PixelBuffer

logger = logging.getLogger(__name__)


def _to_supported_layout(arr: np.ndarray) -> np.ndarray:
    """Normalize decoded samples to uint8 (H, W, C) with C in {1, 3, 4}."""
    if arr.dtype != np.uint8:
        arr = img_as_ubyte(arr)
    if arr.ndim == 2:
        return arr[:, :, np.newaxis]
    if arr.ndim != 3:
        raise ValueError(f"Unsupported image shape {arr.shape}")
    if arr.shape[2] == 2:
        # Gray + alpha: expand to RGBA.
        gray, alpha = arr[:, :, :1], arr[:, :, 1:]
        return np.concatenate([gray, gray, gray, alpha], axis=2)
    if arr.shape[2] not in (1, 3, 4):
        raise ValueError(f"Unsupported channel count {arr.shape[2]}")
    return arr


def decode_image(path: str) -> Tuple[np.ndarray, int, int, int]:
    """
    Decode an image file into ``(buffer, width, height, channels)``.

    Raises:
        FileNotFoundError: The file does not exist.
        IOError: The file exists but cannot be decoded.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image file does not exist: {path}")
    try:
        arr = _to_supported_layout(np.asarray(skio.imread(path)))
    except (OSError, ValueError) as exc:
        raise IOError(f"Failed to load image: {path} ({exc})") from exc

    h, w, c = arr.shape
    return np.ascontiguousarray(arr).reshape(-1), w, h, c


class ImageLoader(BaseLoader):
    """Loads one image file into a PixelBuffer. Decode failures are fatal."""

    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None) -> PixelBuffer:
        if callback:
            callback(0, f"Decoding {os.path.basename(source)}...")
        buffer, w, h, c = decode_image(source)
        logger.debug("Image loaded with size %d x %d with %d channel(s): %s", w, h, c, source)
        if callback:
            callback(100, "Image loaded.")
        return PixelBuffer(data=buffer, width=w, height=h, channels=c, metadata={"Source": source})
