"""
Color-space conversions and histogram based tone operations.

HSV / HSL are stored in the first three channels of the same buffer with every
component scaled to [0, 255]: hue maps [0, 360) degrees onto [0, 255], and
saturation and value / lightness map [0, 1] onto [0, 255]. The 8-bit
quantization makes the round trip approximate.
"""

import logging

import numpy as np

from config import (
    COLOR_MODE_HSL,
    COLOR_MODE_HSV,
    COLOR_MODES,
    LUMA_WEIGHTS_BT709,
    MAX_SAMPLE_VALUE,
)
from core.base import PixelBuffer
from processors.utils import require_color, round_half_up, to_uint8

logger = logging.getLogger(__name__)


# ==========================================
# Array-level conversions (..., 3) uint8 -> (..., 3) uint8
# ==========================================

def _hue_degrees(r: np.ndarray, g: np.ndarray, b: np.ndarray,
                 cmax: np.ndarray, delta: np.ndarray) -> np.ndarray:
    safe = np.where(delta == 0, 1.0, delta)
    hue = np.select(
        [delta == 0, cmax == r, cmax == g],
        [0.0, 60.0 * np.mod((g - b) / safe, 6.0), 60.0 * ((b - r) / safe + 2.0)],
        default=60.0 * ((r - g) / safe + 4.0),
    )
    return hue


def _sector_to_rgb(hue: np.ndarray, c: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Place chroma ``c`` and secondary ``x`` according to the 60 degree sector of ``hue``."""
    sector = np.clip(np.floor(hue / 60.0), 0, 5).astype(np.int64)
    zero = np.zeros_like(c)
    r = np.choose(sector, [c, x, zero, zero, x, c])
    g = np.choose(sector, [x, c, c, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, c, c, x])
    return np.stack([r, g, b], axis=-1)


def _scale_out(values: np.ndarray) -> np.ndarray:
    return to_uint8(round_half_up(values * MAX_SAMPLE_VALUE))


def rgb_array_to_hsv(rgb: np.ndarray) -> np.ndarray:
    rgb = rgb.astype(np.float64) / MAX_SAMPLE_VALUE
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    delta = cmax - cmin

    hue = _hue_degrees(r, g, b, cmax, delta)
    sat = np.where(cmax == 0, 0.0, delta / np.where(cmax == 0, 1.0, cmax))
    return _scale_out(np.stack([hue / 360.0, sat, cmax], axis=-1))


def hsv_array_to_rgb(hsv: np.ndarray) -> np.ndarray:
    hsv = hsv.astype(np.float64) / MAX_SAMPLE_VALUE
    hue = hsv[..., 0] * 360.0
    sat, val = hsv[..., 1], hsv[..., 2]

    c = val * sat
    x = c * (1.0 - np.abs(np.mod(hue / 60.0, 2.0) - 1.0))
    m = val - c
    return _scale_out(_sector_to_rgb(hue, c, x) + m[..., np.newaxis])


def rgb_array_to_hsl(rgb: np.ndarray) -> np.ndarray:
    rgb = rgb.astype(np.float64) / MAX_SAMPLE_VALUE
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    delta = cmax - cmin
    light = (cmax + cmin) / 2.0

    denom = np.where(light < 0.5, cmax + cmin, 2.0 - cmax - cmin)
    sat = np.where(delta == 0, 0.0, delta / np.where(denom == 0, 1.0, denom))
    hue = _hue_degrees(r, g, b, cmax, delta)
    return _scale_out(np.stack([hue / 360.0, sat, light], axis=-1))


def hsl_array_to_rgb(hsl: np.ndarray) -> np.ndarray:
    hsl = hsl.astype(np.float64) / MAX_SAMPLE_VALUE
    hue = hsl[..., 0] * 360.0
    sat, light = hsl[..., 1], hsl[..., 2]

    c = (1.0 - np.abs(2.0 * light - 1.0)) * sat
    x = c * (1.0 - np.abs(np.mod(hue / 60.0, 2.0) - 1.0))
    m = light - c / 2.0
    return _scale_out(_sector_to_rgb(hue, c, x) + m[..., np.newaxis])


_FORWARD = {COLOR_MODE_HSV: rgb_array_to_hsv, COLOR_MODE_HSL: rgb_array_to_hsl}
_BACKWARD = {COLOR_MODE_HSV: hsv_array_to_rgb, COLOR_MODE_HSL: hsl_array_to_rgb}


def _check_mode(mode: int) -> int:
    if mode not in COLOR_MODES:
        raise ValueError(f"Unsupported color mode {mode}; expected 1 (HSV) or 2 (HSL).")
    return mode


# ==========================================
# Image-level conversions
# ==========================================

def rgb_to_gray(img: PixelBuffer) -> None:
    """
    Replace an RGB(A) buffer with BT.709 luma, ``round(0.2126R + 0.7152G + 0.0722B)``.

    The image becomes single channel; alpha is dropped. Gray input is left as is.
    """
    if img.channels == 1:
        return
    require_color(img, "rgb_to_gray")
    rgb = img.pixels[:, :, :3].astype(np.float64)
    luma = rgb @ np.asarray(LUMA_WEIGHTS_BT709, dtype=np.float64)
    img.replace_data(to_uint8(round_half_up(luma)), channels=1)


def _convert_in_place(img: PixelBuffer, converter, operation: str) -> None:
    require_color(img, operation)
    color = img.pixels[:, :, :3]
    color[...] = converter(color)


def rgb_to_hsv(img: PixelBuffer) -> None:
    _convert_in_place(img, rgb_array_to_hsv, "rgb_to_hsv")


def hsv_to_rgb(img: PixelBuffer) -> None:
    _convert_in_place(img, hsv_array_to_rgb, "hsv_to_rgb")


def rgb_to_hsl(img: PixelBuffer) -> None:
    _convert_in_place(img, rgb_array_to_hsl, "rgb_to_hsl")


def hsl_to_rgb(img: PixelBuffer) -> None:
    _convert_in_place(img, hsl_array_to_rgb, "hsl_to_rgb")


# ==========================================
# Histogram operations
# ==========================================

def _cumulative_histogram(samples: np.ndarray) -> np.ndarray:
    hist = np.bincount(samples.reshape(-1), minlength=256)
    return np.cumsum(hist).astype(np.int64)


def histogram_equalization(img: PixelBuffer, mode: int = COLOR_MODE_HSV) -> None:
    """
    Spread the tonal range using the cumulative histogram (in place).

    Gray images are remapped with ``round(255 * CDF[v] / N)``. Color images are
    converted to HSV (``mode=1``) or HSL (``mode=2``), the V / L channel is
    remapped with ``round(255 * (CDF[v] - CDF[0]) / (N - CDF[0]))``, and the
    result is converted back. Hue, saturation and alpha are untouched.
    """
    total = img.width * img.height

    if img.channels == 1:
        cdf = _cumulative_histogram(img.data)
        lut = to_uint8(round_half_up(MAX_SAMPLE_VALUE * cdf / total))
        img.data[...] = lut[img.data]
        return

    _check_mode(mode)
    require_color(img, "histogram_equalization")
    color = img.pixels[:, :, :3]
    converted = _FORWARD[mode](color)

    channel = converted[..., 2]
    cdf = _cumulative_histogram(channel)
    cdf_min = cdf[0]
    denom = total - cdf_min
    if denom != 0:
        lut = to_uint8(round_half_up((cdf - cdf_min) / denom * MAX_SAMPLE_VALUE))
    else:
        lut = np.zeros(256, dtype=np.uint8)
    converted[..., 2] = lut[channel]

    color[...] = _BACKWARD[mode](converted)


def thresholding(img: PixelBuffer, threshold: int, mode: int = COLOR_MODE_HSV) -> None:
    """
    Binary threshold: samples strictly above ``threshold`` become 255, others 0.

    Gray images are thresholded in place. Color images are converted to HSV
    (``mode=1``) or HSL (``mode=2``) and the V / L channel is thresholded into
    a new single-channel buffer; the image stays grayscale afterwards.
    """
    if img.channels == 1:
        img.data[...] = np.where(img.data > threshold, MAX_SAMPLE_VALUE, 0).astype(np.uint8)
        return

    _check_mode(mode)
    require_color(img, "thresholding")
    converted = _FORWARD[mode](img.pixels[:, :, :3])
    binary = np.where(converted[..., 2] > threshold, MAX_SAMPLE_VALUE, 0).astype(np.uint8)
    img.replace_data(binary, channels=1)
    logger.debug("Thresholded %s channel at %d; image is now single channel.",
                 "V" if mode == COLOR_MODE_HSV else "L", threshold)
