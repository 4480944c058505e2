"""
Blur filters for images (2D) and volumes (3D).

Every filter reads from a snapshot of the source samples and writes a fresh
buffer that then replaces the image data, so no sweep ever reads its own
output. Boundary policies differ per filter and are part of their contract:

- median (2D):   replicate (coordinates clamped to the image)
- box:           crop (out-of-bounds offsets skipped, count shrinks)
- gaussian:      mirror about the current sample (``j + d`` -> ``j - d``)
- median (3D):   crop along z, replicate along x / y
"""

import logging
from typing import Callable, Optional

import numpy as np
import scipy.ndimage as ndimage
from numpy.lib.stride_tricks import sliding_window_view

from config import DEFAULT_SIGMA
from core.base import PixelBuffer, VolumeStack
from processors.utils import (
    gaussian_kernel,
    mirrored_indices,
    require_volume,
    round_half_up,
    select_kth,
    to_uint8,
    window_radius,
)

logger = logging.getLogger(__name__)

ProgressCallback = Optional[Callable[[int, str], None]]


# ==========================================
# 2D filters
# ==========================================

def median_blur(img: PixelBuffer, kernel_size: int) -> None:
    """
    Median of the clamped ``k x k`` neighborhood for every non-alpha sample.

    Even kernel sizes use the same ``-k//2 .. k//2`` offsets, i.e. a window of
    ``k + 1``. Alpha is carried over from the source.
    """
    r = window_radius(kernel_size)
    side = 2 * r + 1
    src = img.pixels.copy()
    out = src.copy()
    cc = img.color_channels

    padded = np.pad(src[:, :, :cc], ((r, r), (r, r), (0, 0)), mode="edge")
    windows = sliding_window_view(padded, (side, side), axis=(0, 1))
    flat = windows.reshape(img.height, img.width, cc, side * side)
    out[:, :, :cc] = select_kth(flat, (side * side) // 2)

    img.replace_data(out)


def box_blur(img: PixelBuffer, kernel_size: int) -> None:
    """
    Mean of the in-bounds part of the ``k x k`` neighborhood (integer division).

    Edge pixels average fewer samples. Alpha is copied from the center pixel.
    """
    r = window_radius(kernel_size)
    side = 2 * r + 1
    src = img.pixels.copy()
    out = src.copy()
    cc = img.color_channels

    footprint = np.ones((side, side, 1), dtype=np.int64)
    sums = ndimage.correlate(src[:, :, :cc].astype(np.int64), footprint, mode="constant", cval=0)

    rows = np.arange(img.height)
    cols = np.arange(img.width)
    count_y = np.minimum(rows + r, img.height - 1) - np.maximum(rows - r, 0) + 1
    count_x = np.minimum(cols + r, img.width - 1) - np.maximum(cols - r, 0) + 1
    counts = np.outer(count_y, count_x)[:, :, np.newaxis]

    out[:, :, :cc] = (sums // counts).astype(np.uint8)
    img.replace_data(out)


def _gaussian_pass(src: np.ndarray, weights: np.ndarray, axis: int) -> np.ndarray:
    """One separable 1D pass along ``axis``; rounded and clamped to uint8."""
    length = src.shape[axis]
    r = len(weights) // 2
    acc = np.zeros(src.shape, dtype=np.float64)
    for offset, weight in zip(range(-r, r + 1), weights):
        acc += weight * np.take(src, mirrored_indices(length, offset), axis=axis)
    return to_uint8(round_half_up(np.clip(acc, 0.0, 255.0)))


def _gaussian_weights(kernel_size: int, sigma: float) -> np.ndarray:
    return gaussian_kernel(2 * window_radius(kernel_size) + 1, sigma)


def gaussian_blur_2d(img: PixelBuffer, kernel_size: int, sigma: float = DEFAULT_SIGMA) -> None:
    """
    Separable Gaussian blur: horizontal pass, then vertical pass.

    Only color channels are computed. The output buffer starts as a copy of
    the source, so an RGBA image keeps its alpha samples as they were.
    """
    weights = _gaussian_weights(kernel_size, sigma)
    src = img.pixels.copy()
    out = src.copy()
    cc = img.color_channels

    horizontal = _gaussian_pass(src[:, :, :cc], weights, axis=1)
    out[:, :, :cc] = _gaussian_pass(horizontal, weights, axis=0)
    img.replace_data(out)


# ==========================================
# 3D filters
# ==========================================

def median_blur_3d(vol: VolumeStack, kernel_size: int, callback: ProgressCallback = None) -> None:
    """
    3D median over a ``k x k x k`` neighborhood (in place on every slice).

    Slices beyond the stack ends are not sampled, so the neighborhood shrinks
    near the first and last slice; x / y are clamped. The result is the
    smallest value whose cumulative count reaches ``total // 2`` (at least
    one sample, so k = 1 leaves the volume unchanged).
    """
    require_volume(vol, "median_blur_3d")
    r = window_radius(kernel_size)
    side = 2 * r + 1
    volume = vol.as_array()
    depth, height, width, _ = volume.shape
    cc = vol[0].color_channels

    padded = np.pad(volume[..., :cc], ((0, 0), (r, r), (r, r), (0, 0)), mode="edge")
    out = volume.copy()

    for z in range(depth):
        z0, z1 = max(0, z - r), min(depth - 1, z + r)
        block = padded[z0:z1 + 1]
        windows = sliding_window_view(block, (side, side), axis=(1, 2))
        # (nz, H, W, cc, s, s) -> (H, W, cc, nz * s * s)
        flat = np.moveaxis(windows, 0, 3).reshape(height, width, cc, -1)
        total = flat.shape[-1]
        out[z, ..., :cc] = select_kth(flat, max(total // 2, 1) - 1)
        if callback:
            callback(int(100 * (z + 1) / depth), f"3D median: slice {z + 1}/{depth}")

    vol.set_from_array(out)
    logger.debug("median_blur_3d applied (k=%d) to %d slices.", kernel_size, depth)


def gaussian_blur_3d(vol: VolumeStack, kernel_size: int, sigma: float = DEFAULT_SIGMA,
                     callback: ProgressCallback = None) -> None:
    """
    3D separable Gaussian blur: x and y per slice, then z across slices.

    The z pass reads a snapshot of the x/y-blurred stack and mirrors slice
    indices about the current slice, clamped into the stack. Alpha untouched.
    """
    require_volume(vol, "gaussian_blur_3d")
    weights = _gaussian_weights(kernel_size, sigma)
    volume = vol.as_array()
    cc = vol[0].color_channels

    if callback:
        callback(0, "3D gaussian: x/y passes...")
    planar = _gaussian_pass(volume[..., :cc], weights, axis=2)
    planar = _gaussian_pass(planar, weights, axis=1)

    if callback:
        callback(50, "3D gaussian: z pass...")
    out = volume.copy()
    out[..., :cc] = _gaussian_pass(planar, weights, axis=0)

    vol.set_from_array(out)
    if callback:
        callback(100, "3D gaussian complete.")
    logger.debug("gaussian_blur_3d applied (k=%d, sigma=%.3f) to %d slices.",
                 kernel_size, sigma, vol.depth)
