"""
Gradient-magnitude edge detectors.

All detectors read the first channel only (callers grayscale color images
first) and leave a single-channel image holding
``min(255, sqrt(gx^2 + gy^2))`` truncated to 8 bits.
"""

from typing import Callable, Dict

import numpy as np
import scipy.ndimage as ndimage

from config import MAX_SAMPLE_VALUE
from core.base import PixelBuffer

SOBEL_H = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])
SOBEL_V = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]])

PREWITT_H = np.array([[-1, -1, -1], [0, 0, 0], [1, 1, 1]])
PREWITT_V = np.array([[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]])

SCHARR_H = np.array([[-3, 0, 3], [-10, 0, 10], [-3, 0, 3]])
SCHARR_V = np.array([[-3, -10, -3], [0, 0, 0], [3, 10, 3]])


def _first_channel(img: PixelBuffer) -> np.ndarray:
    return img.pixels[:, :, 0].astype(np.float64)


def _store_magnitude(img: PixelBuffer, gx: np.ndarray, gy: np.ndarray) -> None:
    magnitude = np.minimum(np.sqrt(gx * gx + gy * gy), float(MAX_SAMPLE_VALUE))
    img.replace_data(magnitude.astype(np.uint8), channels=1)


def apply_edge_detection(img: PixelBuffer, horizontal_kernel, vertical_kernel) -> None:
    """
    Correlate two 3x3 integer kernels with the image and store the gradient magnitude.

    Neighborhoods are clamped to the image (replicated border).
    """
    h_kernel = np.asarray(horizontal_kernel, dtype=np.float64)
    v_kernel = np.asarray(vertical_kernel, dtype=np.float64)
    if h_kernel.shape != (3, 3) or v_kernel.shape != (3, 3):
        raise ValueError("Edge detection kernels must be 3x3.")

    src = _first_channel(img)
    gx = ndimage.correlate(src, h_kernel, mode="nearest")
    gy = ndimage.correlate(src, v_kernel, mode="nearest")
    _store_magnitude(img, gx, gy)


def sobel(img: PixelBuffer) -> None:
    apply_edge_detection(img, SOBEL_H, SOBEL_V)


def prewitt(img: PixelBuffer) -> None:
    apply_edge_detection(img, PREWITT_H, PREWITT_V)


def scharr(img: PixelBuffer) -> None:
    apply_edge_detection(img, SCHARR_H, SCHARR_V)


def roberts(img: PixelBuffer) -> None:
    """
    Roberts cross on 2x2 diagonals with dedicated rules for the last row and column.

    Interior (y < h-1, x < w-1):
        gx = p[y, x] - p[y+1, x+1]       gy = p[y+1, x] - p[y, x+1]
    Last row (x < w-1):
        gx = p[h-1, x] - p[h-2, x+1]     gy = p[h-1, w-1] - p[h-1, x+1]
    Last column (y < h-1):
        gx = p[y, w-1] - p[y+1, w-1]     gy = -gx
    Bottom-right corner:
        gx = -p[h-1, w-1]                gy = 0
    """
    if img.width < 2 or img.height < 2:
        raise ValueError("Roberts edge detection requires an image of at least 2x2 pixels.")

    p = _first_channel(img)
    gx = np.empty_like(p)
    gy = np.empty_like(p)

    gx[:-1, :-1] = p[:-1, :-1] - p[1:, 1:]
    gy[:-1, :-1] = p[1:, :-1] - p[:-1, 1:]

    gx[-1, :-1] = p[-1, :-1] - p[-2, 1:]
    gy[-1, :-1] = p[-1, -1] - p[-1, 1:]

    gx[:-1, -1] = p[:-1, -1] - p[1:, -1]
    gy[:-1, -1] = p[1:, -1] - p[:-1, -1]

    gx[-1, -1] = -p[-1, -1]
    gy[-1, -1] = 0.0

    _store_magnitude(img, gx, gy)


EDGE_DETECTORS: Dict[str, Callable[[PixelBuffer], None]] = {
    "sobel": sobel,
    "prewitt": prewitt,
    "scharr": scharr,
    "roberts": roberts,
}
