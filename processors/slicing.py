"""
Orthogonal re-slicing of a volume.
"""

from enum import Enum

import numpy as np

from core.base import PixelBuffer, VolumeStack
from processors.utils import require_volume


class SliceType(Enum):
    """Plane of the extracted slice."""
    XZ = "xz"
    YZ = "yz"


def slice_volume(vol: VolumeStack, n: int, slice_type: SliceType) -> PixelBuffer:
    """
    Cut the volume along the XZ or YZ plane.

    XZ: width = volume width, height = slice count; row z is row ``n`` of slice z.
    YZ: width = slice count, height = volume height; column z is column ``n`` of slice z.

    ``n`` must be validated by the caller against the height (XZ) or width (YZ).
    """
    require_volume(vol, "slice_volume")
    slice_type = SliceType(slice_type)

    if slice_type is SliceType.XZ:
        plane = np.stack([img.pixels[n, :, :] for img in vol], axis=0)  # (Z, W, C)
    else:
        plane = np.stack([img.pixels[:, n, :] for img in vol], axis=1)  # (H, Z, C)

    return PixelBuffer.from_array(plane, metadata={"Slice": slice_type.name, "Index": int(n)})
