"""
Filter, projection and slice algorithms for images and volumes.

Modules:
- tonal: brightness and salt-and-pepper noise
- blur: median / box / gaussian blur (2D) and median / gaussian blur (3D)
- color: gray, HSV, HSL conversions, histogram equalization, thresholding
- edges: Sobel, Prewitt, Scharr and Roberts edge detection
- projection: maximum / minimum / average intensity projections
- slicing: XZ / YZ re-slicing
- registry: name -> filter lookup used by the pipelines
- utils: shared kernel, index and selection helpers
"""

from processors.tonal import adjust_brightness, auto_adjust_brightness, add_salt_and_pepper
from processors.blur import (
    median_blur,
    box_blur,
    gaussian_blur_2d,
    median_blur_3d,
    gaussian_blur_3d,
)
from processors.color import (
    rgb_to_gray,
    rgb_to_hsv,
    hsv_to_rgb,
    rgb_to_hsl,
    hsl_to_rgb,
    histogram_equalization,
    thresholding,
)
from processors.edges import (
    apply_edge_detection,
    sobel,
    prewitt,
    scharr,
    roberts,
    EDGE_DETECTORS,
)
from processors.projection import mip, min_ip, aip, project, PROJECTIONS
from processors.slicing import SliceType, slice_volume
from processors.registry import IMAGE_FILTERS, VOLUME_FILTERS, apply_filter_step

__all__ = [
    'adjust_brightness', 'auto_adjust_brightness', 'add_salt_and_pepper',
    'median_blur', 'box_blur', 'gaussian_blur_2d', 'median_blur_3d', 'gaussian_blur_3d',
    'rgb_to_gray', 'rgb_to_hsv', 'hsv_to_rgb', 'rgb_to_hsl', 'hsl_to_rgb',
    'histogram_equalization', 'thresholding',
    'apply_edge_detection', 'sobel', 'prewitt', 'scharr', 'roberts', 'EDGE_DETECTORS',
    'mip', 'min_ip', 'aip', 'project', 'PROJECTIONS',
    'SliceType', 'slice_volume',
    'IMAGE_FILTERS', 'VOLUME_FILTERS', 'apply_filter_step',
]
