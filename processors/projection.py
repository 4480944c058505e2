"""
Intensity projections of a volume along z.

Each projection optionally pre-filters the whole volume in place, then reduces
every sample position across slices. All channels, alpha included, are
reduced the same way.
"""

import logging
from typing import Callable, Dict, Optional

import numpy as np

from config import (
    DEFAULT_FILTER_METHOD,
    DEFAULT_KERNEL_SIZE,
    DEFAULT_SIGMA,
    FILTER_METHOD_GAUSSIAN,
    FILTER_METHOD_MEDIAN,
    FILTER_METHODS,
)
from core.base import PixelBuffer, VolumeStack
from processors.blur import gaussian_blur_3d, median_blur_3d
from processors.utils import require_volume, round_half_up, to_uint8

logger = logging.getLogger(__name__)

ProgressCallback = Optional[Callable[[int, str], None]]


def _prefilter(vol: VolumeStack, filter_method: int, kernel_size: int, sigma: float,
               callback: ProgressCallback) -> None:
    if filter_method not in FILTER_METHODS:
        raise ValueError(
            f"Unsupported filter method {filter_method}; expected 1 (gaussian), 2 (median) or 3 (none)."
        )
    require_volume(vol, "projection")

    if filter_method == FILTER_METHOD_GAUSSIAN:
        gaussian_blur_3d(vol, kernel_size, sigma, callback=callback)
    elif filter_method == FILTER_METHOD_MEDIAN:
        median_blur_3d(vol, kernel_size, callback=callback)


def _project(vol: VolumeStack, reducer, name: str, filter_method: int, kernel_size: int,
             sigma: float, callback: ProgressCallback) -> PixelBuffer:
    _prefilter(vol, filter_method, kernel_size, sigma, callback)
    stack = vol.as_array()
    result = PixelBuffer.from_array(reducer(stack), metadata={"Projection": name, "Slices": vol.depth})
    logger.info("%s over %d slices (filter=%s).", name, vol.depth, FILTER_METHODS[filter_method])
    return result


def _max(stack: np.ndarray) -> np.ndarray:
    return stack.max(axis=0)


def _min(stack: np.ndarray) -> np.ndarray:
    return stack.min(axis=0)


def _mean(stack: np.ndarray) -> np.ndarray:
    return to_uint8(round_half_up(stack.mean(axis=0, dtype=np.float64)))


def mip(vol: VolumeStack, filter_method: int = DEFAULT_FILTER_METHOD,
        kernel_size: int = DEFAULT_KERNEL_SIZE, sigma: float = DEFAULT_SIGMA,
        callback: ProgressCallback = None) -> PixelBuffer:
    """Maximum intensity projection."""
    return _project(vol, _max, "MIP", filter_method, kernel_size, sigma, callback)


def min_ip(vol: VolumeStack, filter_method: int = DEFAULT_FILTER_METHOD,
           kernel_size: int = DEFAULT_KERNEL_SIZE, sigma: float = DEFAULT_SIGMA,
           callback: ProgressCallback = None) -> PixelBuffer:
    """Minimum intensity projection."""
    return _project(vol, _min, "MinIP", filter_method, kernel_size, sigma, callback)


def aip(vol: VolumeStack, filter_method: int = DEFAULT_FILTER_METHOD,
        kernel_size: int = DEFAULT_KERNEL_SIZE, sigma: float = DEFAULT_SIGMA,
        callback: ProgressCallback = None) -> PixelBuffer:
    """Average intensity projection; the mean is rounded half up."""
    return _project(vol, _mean, "AIP", filter_method, kernel_size, sigma, callback)


PROJECTIONS: Dict[str, Callable[..., PixelBuffer]] = {
    "mip": mip,
    "minip": min_ip,
    "aip": aip,
}


def project(vol: VolumeStack, kind: str, **kwargs) -> PixelBuffer:
    """Dispatch to a projection by name (``mip``, ``minip`` or ``aip``)."""
    try:
        fn = PROJECTIONS[kind.lower()]
    except KeyError:
        allowed = ", ".join(PROJECTIONS)
        raise ValueError(f"Unknown projection '{kind}'. Expected one of: {allowed}.") from None
    return fn(vol, **kwargs)
