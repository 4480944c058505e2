"""
Exporters for images and volumes.
"""

from exporters.image import encode_image, save_image, save_volume
from exporters.stack import export_stack

__all__ = ['encode_image', 'save_image', 'save_volume', 'export_stack']
