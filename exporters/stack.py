"""
Whole-stack export to multi-page TIFF or a NumPy ``.npy`` array.
"""

import logging
import os

import numpy as np
from tifffile import imwrite

from core import VolumeStack

logger = logging.getLogger(__name__)

STACK_FORMATS = {".tif": "tiff", ".tiff": "tiff", ".npy": "npy"}


def export_stack(vol: VolumeStack, filepath: str) -> str:
    """
    Export the volume as a (Z, H, W) or (Z, H, W, C) array; the format
    follows the extension (.tif / .tiff / .npy).

    Raises:
        ValueError: Empty volume or unsupported extension.
    """
    if vol.is_empty:
        raise ValueError("No data to export.")
    ext = os.path.splitext(filepath)[1].lower()
    fmt = STACK_FORMATS.get(ext)
    if fmt is None:
        raise ValueError(f"Unsupported stack format '{ext}'. Expected one of: {', '.join(STACK_FORMATS)}.")

    stack = vol.as_array()
    if vol.channels == 1:
        stack = stack[..., 0]

    parent = os.path.dirname(filepath)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if fmt == "tiff":
        imwrite(filepath, stack.astype(np.uint8))
    else:
        np.save(filepath, stack)
    logger.info("Volume stack saved to %s (%s)", filepath, fmt)
    return filepath
