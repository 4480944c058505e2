"""
Synthetic data generators for testing.
"""

import logging
from typing import Callable, Optional, Union

import numpy as np

from config import DUMMY_VOLUME_DEPTH, DUMMY_VOLUME_SIZE
from core import BaseLoader, VolumeStack

logger = logging.getLogger(__name__)


class DummyLoader(BaseLoader):
    """Synthetic 8-bit phantom: bright spheres in a dim, noisy background."""

    def __init__(self, seed: Optional[int] = None, channels: int = 1):
        self.seed = seed
        self.channels = channels

    def load(self, source: Union[str, int, None] = None,
             callback: Optional[Callable[[int, str], None]] = None,
             depth: int = DUMMY_VOLUME_DEPTH) -> VolumeStack:
        size = _resolve_size(source)
        rng = np.random.default_rng(self.seed)
        logger.info("Generating synthetic phantom (size=%d, depth=%d)...", size, depth)
        if callback:
            callback(0, "Initializing background...")

        # 1) Dim background with mild noise.
        volume = rng.normal(40.0, 8.0, size=(depth, size, size))

        # 2) Bright spheres scattered through the interior.
        zz, yy, xx = np.ogrid[:depth, :size, :size]
        n_spheres = max(1, size // 16)
        for i in range(n_spheres):
            radius = int(rng.integers(max(2, size // 16), max(3, size // 6) + 1))
            cz = int(rng.integers(0, depth))
            cy = int(rng.integers(radius, max(radius + 1, size - radius)))
            cx = int(rng.integers(radius, max(radius + 1, size - radius)))
            mask = (zz - cz) ** 2 + (yy - cy) ** 2 + (xx - cx) ** 2 <= radius ** 2
            volume[mask] = rng.uniform(160.0, 240.0)
            if callback:
                callback(10 + int(80 * (i + 1) / n_spheres), f"Placing spheres ({i + 1}/{n_spheres})...")

        data = np.clip(np.rint(volume), 0, 255).astype(np.uint8)
        if self.channels > 1:
            data = np.repeat(data[..., np.newaxis], self.channels, axis=-1)
            if self.channels == 4:
                data[..., 3] = 255

        if callback:
            callback(100, "Generation complete.")
        return VolumeStack.from_array(data, metadata={
            "Type": "Synthetic",
            "Description": "Bright spheres in a noisy background",
            "SphereCount": n_spheres,
        })


def _resolve_size(source: Union[str, int, None]) -> int:
    """Accepts an integer or integer string, otherwise the default size."""
    if source in (None, ""):
        return DUMMY_VOLUME_SIZE
    try:
        size = int(source)
        if size > 0:
            return size
    except (TypeError, ValueError):
        pass
    return DUMMY_VOLUME_SIZE
