"""
Configuration constants for the Image & Volume Processing Toolkit.
All defaults and numeric contracts are centralized here.
"""

# ==========================================
# Data Model
# ==========================================

# Channel counts accepted by PixelBuffer (gray, RGB, RGBA)
SUPPORTED_CHANNELS = (1, 3, 4)
ALPHA_CHANNEL_INDEX = 3           # Only meaningful when channels == 4
MAX_SAMPLE_VALUE = 255

# ==========================================
# Filter Defaults
# ==========================================
DEFAULT_KERNEL_SIZE = 7
DEFAULT_SIGMA = 2.0

# Auto brightness shifts the mean non-alpha sample towards this value
AUTO_BRIGHTNESS_TARGET = 128

# ITU-R BT.709 luma coefficients (R, G, B)
LUMA_WEIGHTS_BT709 = (0.2126, 0.7152, 0.0722)

# Color mode codes used by histogram equalization / thresholding
COLOR_MODE_HSV = 1
COLOR_MODE_HSL = 2
COLOR_MODES = {
    COLOR_MODE_HSV: "hsv",
    COLOR_MODE_HSL: "hsl",
}

# ==========================================
# Projection Settings
# ==========================================

# Pre-filter codes applied to the whole volume before reduction
FILTER_METHOD_GAUSSIAN = 1
FILTER_METHOD_MEDIAN = 2
FILTER_METHOD_NONE = 3
FILTER_METHODS = {
    FILTER_METHOD_GAUSSIAN: "gaussian_3d",
    FILTER_METHOD_MEDIAN: "median_3d",
    FILTER_METHOD_NONE: "none",
}
DEFAULT_FILTER_METHOD = FILTER_METHOD_NONE

# ==========================================
# Loader / Exporter Settings
# ==========================================

# File naming for per-slice volume export (0-based index)
VOLUME_EXPORT_PATTERN = "image{index}.png"

# Synthetic phantom generator
DUMMY_VOLUME_SIZE = 64
DUMMY_VOLUME_DEPTH = 16

# ==========================================
# CLI Settings
# ==========================================
CLI_DEFAULT_OUTPUT_DIR = "cli_output"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
