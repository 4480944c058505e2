"""
Core data structures and abstract base classes.
"""

import numpy as np
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from typing import Tuple, Dict, Any, List, Optional, Callable, Iterator

from config import SUPPORTED_CHANNELS, ALPHA_CHANNEL_INDEX


def _validate_geometry(width: int, height: int, channels: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image must have a non-zero area, got {width}x{height}.")
    if channels not in SUPPORTED_CHANNELS:
        raise ValueError(f"Unsupported channel count: {channels}. Expected one of {SUPPORTED_CHANNELS}.")


@dataclass
class PixelBuffer:
    """
    Decoded 8-bit image: interleaved samples plus geometry.

    Attributes:
        data (np.ndarray): Flat uint8 buffer of ``width * height * channels``
            samples, row-major with the channel index varying fastest.
        width (int): Number of columns.
        height (int): Number of rows.
        channels (int): 1 (gray), 3 (RGB) or 4 (RGBA).
        metadata (Dict[str, Any]): Arbitrary metadata (source path, etc.).
    """
    data: np.ndarray
    width: int
    height: int
    channels: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.width = int(self.width)
        self.height = int(self.height)
        self.channels = int(self.channels)
        _validate_geometry(self.width, self.height, self.channels)
        self.data = self._coerce(self.data, self.width * self.height * self.channels)

    @staticmethod
    def _coerce(data, expected: int) -> np.ndarray:
        buf = np.ascontiguousarray(np.asarray(data, dtype=np.uint8).reshape(-1))
        if buf.size != expected:
            raise ValueError(f"Buffer holds {buf.size} samples, expected {expected}.")
        return buf

    @classmethod
    def from_array(cls, array: np.ndarray, metadata: Optional[Dict[str, Any]] = None) -> "PixelBuffer":
        """Build from an (H, W) or (H, W, C) array."""
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise ValueError(f"Expected a 2D or 3D array, got shape {arr.shape}.")
        h, w, c = arr.shape
        return cls(data=arr.astype(np.uint8).copy(), width=w, height=h, channels=c,
                   metadata=dict(metadata or {}))

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Returns (height, width, channels)."""
        return (self.height, self.width, self.channels)

    @property
    def pixels(self) -> np.ndarray:
        """(H, W, C) view onto ``data``; writes go through to the buffer."""
        return self.data.reshape(self.height, self.width, self.channels)

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def color_channels(self) -> int:
        """Number of leading channels filters treat as color (alpha excluded)."""
        return min(self.channels, ALPHA_CHANNEL_INDEX)

    def replace_data(self, new_data, channels: Optional[int] = None) -> None:
        """
        Swap in a new buffer (and optionally a new channel count) atomically.

        The displaced buffer is dropped by this owner; nothing else holds it.
        """
        new_channels = self.channels if channels is None else int(channels)
        _validate_geometry(self.width, self.height, new_channels)
        buf = self._coerce(new_data, self.width * self.height * new_channels)
        self.data, self.channels = buf, new_channels

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(data=self.data.copy(), width=self.width, height=self.height,
                           channels=self.channels, metadata=dict(self.metadata))


@dataclass
class VolumeStack:
    """
    Ordered z-stack of same-sized PixelBuffers.

    Attributes:
        images (List[PixelBuffer]): Slices in z order.
        metadata (Dict[str, Any]): Arbitrary metadata (source directory, slab range, ...).
    """
    images: List[PixelBuffer] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.images = list(self.images)
        for img in self.images[1:]:
            self._check_compatible(img)

    def _check_compatible(self, img: PixelBuffer) -> None:
        if not self.images:
            return
        ref = self.images[0]
        if img.shape != ref.shape:
            raise ValueError(
                f"Slice shape {img.shape} does not match volume shape {ref.shape} (H, W, C)."
            )

    @classmethod
    def from_array(cls, array: np.ndarray, metadata: Optional[Dict[str, Any]] = None) -> "VolumeStack":
        """Build from a (Z, H, W) or (Z, H, W, C) array."""
        arr = np.asarray(array)
        if arr.ndim not in (3, 4):
            raise ValueError(f"Expected a 3D or 4D array, got shape {arr.shape}.")
        return cls(images=[PixelBuffer.from_array(s) for s in arr], metadata=dict(metadata or {}))

    def __len__(self) -> int:
        return len(self.images)

    def __iter__(self) -> Iterator[PixelBuffer]:
        return iter(self.images)

    def __getitem__(self, index: int) -> PixelBuffer:
        return self.images[index]

    def append(self, img: PixelBuffer) -> None:
        self._check_compatible(img)
        self.images.append(img)

    @property
    def depth(self) -> int:
        return len(self.images)

    @property
    def is_empty(self) -> bool:
        return not self.images

    def _first(self) -> PixelBuffer:
        if not self.images:
            raise ValueError("Volume contains no slices.")
        return self.images[0]

    @property
    def width(self) -> int:
        return self._first().width

    @property
    def height(self) -> int:
        return self._first().height

    @property
    def channels(self) -> int:
        return self._first().channels

    @property
    def dimensions(self) -> Tuple[int, int, int, int]:
        """Returns (Z, H, W, C), or zeros for an empty volume."""
        if not self.images:
            return (0, 0, 0, 0)
        return (self.depth, self.height, self.width, self.channels)

    def as_array(self) -> np.ndarray:
        """Stacked (Z, H, W, C) copy of every slice."""
        self._first()
        return np.stack([img.pixels for img in self.images], axis=0)

    def set_from_array(self, array: np.ndarray) -> None:
        """Write a (Z, H, W, C) array back into each slice's buffer in place."""
        arr = np.asarray(array)
        if arr.shape != self.dimensions:
            raise ValueError(f"Array shape {arr.shape} does not match volume {self.dimensions}.")
        for img, plane in zip(self.images, arr):
            img.pixels[...] = plane

    def slab(self, z1: int, z2: int) -> "VolumeStack":
        """Independent copy of the 1-based inclusive slice range [z1, z2]."""
        validate_slab_range(z1, z2, self.depth)
        meta = dict(self.metadata)
        meta["SlabRange"] = (z1, z2)
        return VolumeStack(images=[img.copy() for img in self.images[z1 - 1:z2]], metadata=meta)


def validate_slab_range(z1: int, z2: int, count: int) -> None:
    """Reject a 1-based inclusive range that does not fit ``count`` slices."""
    if z1 < 1 or z2 > count or z1 > z2:
        raise ValueError(f"Invalid z range [{z1}, {z2}] for {count} slices.")


class BaseLoader(ABC):
    """Abstract base class for data acquisition strategies."""

    @abstractmethod
    def load(self, source: str, callback: Optional[Callable[[int, str], None]] = None):
        """
        Load data from a source path.

        Args:
            source (str): Path to file or directory.
            callback: Optional progress callback (percent, message).

        Returns:
            PixelBuffer or VolumeStack: Loaded data object.
        """
        pass
