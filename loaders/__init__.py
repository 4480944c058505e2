"""
Data loaders package.
"""

from loaders.image import ImageLoader, decode_image
from loaders.volume import VolumeLoader, list_entries, sorted_entries
from loaders.dummy import DummyLoader

__all__ = [
    'ImageLoader',
    'decode_image',
    'VolumeLoader',
    'list_entries',
    'sorted_entries',
    'DummyLoader',
]
