"""
Volume loading from a directory of same-sized images.

Files are ordered by a plain, case-sensitive sort of their names (zero-pad
numeric names for numeric order). Loading is best-effort: a file that fails
to decode is logged and skipped.
"""

import logging
import os
from typing import Callable, List, Optional, Tuple

from core import BaseLoader, PixelBuffer, VolumeStack
from core.base import validate_slab_range
from loaders.image import decode_image

logger = logging.getLogger(__name__)


def _validate_directory(directory: str) -> None:
    """Validate the volume directory exists."""
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Directory does not exist or is not a directory: {directory}")


def list_entries(directory: str) -> List[Tuple[str, bool]]:
    """Return ``(filename, is_regular_file)`` for every directory entry, unsorted."""
    _validate_directory(directory)
    with os.scandir(directory) as it:
        return [(entry.name, entry.is_file()) for entry in it]


def sorted_entries(directory: str) -> List[Tuple[str, bool]]:
    """Directory entries sorted by raw filename string."""
    return sorted(list_entries(directory), key=lambda entry: entry[0])


class VolumeLoader(BaseLoader):
    """
    Builds a VolumeStack from a directory, optionally restricted to a slab.

    The slab range ``[z1, z2]`` is 1-based and inclusive over the sorted
    directory entries.
    """

    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None,
             z1: Optional[int] = None, z2: Optional[int] = None) -> VolumeStack:
        entries = sorted_entries(source)

        if z1 is not None or z2 is not None:
            z1 = 1 if z1 is None else int(z1)
            z2 = len(entries) if z2 is None else int(z2)
            validate_slab_range(z1, z2, len(entries))
            selected = entries[z1 - 1:z2]
        else:
            selected = entries

        files = [name for name, is_file in selected if is_file]
        images: List[PixelBuffer] = []
        failed = 0
        total = max(len(files), 1)

        for i, name in enumerate(files, start=1):
            path = os.path.join(source, name)
            try:
                buffer, w, h, c = decode_image(path)
                images.append(PixelBuffer(data=buffer, width=w, height=h, channels=c,
                                          metadata={"Source": path}))
            except (OSError, ValueError) as exc:
                failed += 1
                logger.warning("Failed to load image %s: %s", path, exc)
            if callback:
                callback(int(100 * i / total), f"Loaded {i}/{len(files)}: {name}")

        if not images:
            raise ValueError(f"No loadable images found in {source}")

        metadata = {
            "Source": source,
            "SliceCount": len(images),
            "FailedFiles": failed,
        }
        if z1 is not None:
            metadata["SlabRange"] = (z1, z2)

        volume = VolumeStack(images=images, metadata=metadata)
        logger.info("Volume loaded from %s: %d slice(s) of %d x %d x %d, %d failed.",
                    source, volume.depth, volume.width, volume.height, volume.channels, failed)
        return volume
