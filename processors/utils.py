"""
Shared helpers for the filter, projection and slice modules.

``quickselect`` is the scalar reference for k-th order selection; the
filters call the vectorized ``select_kth``, and the tests check both agree.
"""

import logging
from typing import List, Sequence

import numpy as np

from config import MAX_SAMPLE_VALUE

logger = logging.getLogger(__name__)


def window_radius(kernel_size: int) -> int:
    """Half-width of a kernel: offsets run from -r to +r inclusive."""
    if int(kernel_size) < 1:
        raise ValueError(f"Kernel size must be >= 1, got {kernel_size}.")
    return int(kernel_size) // 2


def adjust_kernel_size(kernel_size: int) -> int:
    """Force an odd kernel size by stepping even sizes down by one."""
    kernel_size = int(kernel_size)
    if kernel_size < 1:
        raise ValueError(f"Kernel size must be >= 1, got {kernel_size}.")
    if kernel_size % 2 == 0:
        logger.warning("Even kernel size %d; using %d instead.", kernel_size, kernel_size - 1)
        return max(1, kernel_size - 1)
    return kernel_size


def gaussian_kernel(kernel_size: int, sigma: float) -> np.ndarray:
    """
    Normalized 1D Gaussian kernel of length ``kernel_size``.

    Weights are ``exp(-(i - center)^2 / (2 sigma^2))`` with ``center = kernel_size // 2``.
    """
    if int(kernel_size) < 1:
        raise ValueError(f"Kernel size must be >= 1, got {kernel_size}.")
    if sigma <= 0:
        raise ValueError(f"Sigma must be > 0, got {sigma}.")
    offsets = np.arange(int(kernel_size)) - int(kernel_size) // 2
    weights = np.exp(-(offsets.astype(np.float64) ** 2) / (2.0 * sigma * sigma))
    return weights / weights.sum()


def mirrored_indices(length: int, offset: int) -> np.ndarray:
    """
    Source index for every position ``j`` shifted by ``offset``.

    Out-of-range ``j + offset`` falls back to ``j - offset`` (mirror about the
    current sample, not the border), then is clamped into ``[0, length)``.
    """
    j = np.arange(length)
    idx = j + offset
    outside = (idx < 0) | (idx >= length)
    idx[outside] = j[outside] - offset
    return np.clip(idx, 0, length - 1)


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative values half away from zero."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Clamp into [0, 255] and cast; callers round beforehand when required."""
    return np.clip(values, 0, MAX_SAMPLE_VALUE).astype(np.uint8)


def quickselect(values: Sequence[int], k: int) -> int:
    """
    k-th smallest element (0-based) by iterative Lomuto partitioning.

    The last element of the active range is the pivot. Works on a copy, so the
    caller's sequence is left untouched.
    """
    arr: List[int] = list(values)
    if not 0 <= k < len(arr):
        raise IndexError(f"k={k} out of range for {len(arr)} values")

    low, high = 0, len(arr) - 1
    while low < high:
        pivot = arr[high]
        i = low - 1
        for j in range(low, high):
            if arr[j] <= pivot:
                i += 1
                arr[i], arr[j] = arr[j], arr[i]
        arr[i + 1], arr[high] = arr[high], arr[i + 1]
        p = i + 1

        if p == k:
            return arr[p]
        if p > k:
            high = p - 1
        else:
            low = p + 1
    return arr[low]


def select_kth(windows: np.ndarray, k: int) -> np.ndarray:
    """
    Vectorized k-th order statistic along the last axis.

    ``np.partition`` is introselect, the same partition-based selection as
    :func:`quickselect`, applied to every window at once.
    """
    return np.partition(windows, k, axis=-1)[..., k]


def require_color(img, operation: str) -> None:
    """Reject images without at least three color channels."""
    if img.channels < 3:
        raise ValueError(f"{operation} requires a 3 or 4 channel image, got {img.channels}.")


def require_volume(vol, operation: str) -> None:
    if vol is None or vol.is_empty:
        raise ValueError(f"{operation} requires a volume with at least one slice.")
