"""
Tonal adjustments: brightness, auto brightness and salt-and-pepper noise.

Alpha (channel 3 of an RGBA buffer) is never modified here.
"""

import logging
from typing import Optional, Union

import numpy as np

from config import AUTO_BRIGHTNESS_TARGET, MAX_SAMPLE_VALUE, SUPPORTED_CHANNELS
from core.base import PixelBuffer

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.Generator]


def adjust_brightness(img: PixelBuffer, delta: int) -> None:
    """Add ``delta`` to every non-alpha sample, saturating at 0 and 255 (in place)."""
    color = img.pixels[:, :, :img.color_channels]
    shifted = color.astype(np.int32) + int(delta)
    color[...] = np.clip(shifted, 0, MAX_SAMPLE_VALUE).astype(np.uint8)


def auto_adjust_brightness(img: PixelBuffer) -> int:
    """
    Shift brightness so the mean non-alpha sample lands on 128.

    The mean is integer-truncated before the shift. Returns the applied delta.
    """
    color = img.pixels[:, :, :img.color_channels]
    mean = int(color.sum(dtype=np.int64) // color.size)
    delta = AUTO_BRIGHTNESS_TARGET - mean
    adjust_brightness(img, delta)
    return delta


def add_salt_and_pepper(img: PixelBuffer, density: float, rng: RandomSource = None) -> int:
    """
    Set ``round(w * h * density)`` distinct pixels to black or white.

    Pixels are drawn uniformly without replacement; each selected pixel gets all
    color channels set to 0 or 255 with equal probability, alpha untouched.

    Args:
        img: Image to corrupt in place.
        density: Fraction of pixels affected, in [0, 1].
        rng: ``numpy.random.Generator``, integer seed, or None for fresh entropy.

    Returns:
        int: Number of pixels changed.
    """
    if img.channels not in SUPPORTED_CHANNELS:
        raise ValueError(f"Unsupported number of channels: {img.channels}")
    if not 0.0 <= density <= 1.0:
        raise ValueError(f"Noise density must be within [0, 1], got {density}.")

    generator = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
    num_pixels = img.width * img.height
    count = int(np.floor(num_pixels * density + 0.5))
    if count == 0:
        return 0

    chosen = generator.choice(num_pixels, size=count, replace=False)
    values = generator.integers(0, 2, size=count).astype(np.uint8) * MAX_SAMPLE_VALUE

    flat = img.pixels.reshape(num_pixels, img.channels)
    flat[chosen, :img.color_channels] = values[:, np.newaxis]
    logger.debug("Salt-and-pepper: %d of %d pixels replaced.", count, num_pixels)
    return count
