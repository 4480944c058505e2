"""
Name-based lookup of filters, used by the pipelines and the CLI.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Union

from core.base import PixelBuffer, VolumeStack
from core.dto import FilterStepDTO
from processors.blur import box_blur, gaussian_blur_2d, gaussian_blur_3d, median_blur, median_blur_3d
from processors.color import (
    histogram_equalization,
    hsl_to_rgb,
    hsv_to_rgb,
    rgb_to_gray,
    rgb_to_hsl,
    rgb_to_hsv,
    thresholding,
)
from processors.edges import EDGE_DETECTORS
from processors.tonal import add_salt_and_pepper, adjust_brightness, auto_adjust_brightness

logger = logging.getLogger(__name__)


def _salt_and_pepper(img: PixelBuffer, density: float, seed: int = None) -> None:
    add_salt_and_pepper(img, density, rng=seed)


def _with_grayscale(detector: Callable[[PixelBuffer], None]) -> Callable[[PixelBuffer], None]:
    """Edge detectors read one channel, so color input is converted first."""
    def step(img: PixelBuffer) -> None:
        rgb_to_gray(img)
        detector(img)

    step.__name__ = detector.__name__
    step.__doc__ = detector.__doc__
    return step


IMAGE_FILTERS: Dict[str, Callable[..., Any]] = {
    "brightness": adjust_brightness,
    "auto_brightness": auto_adjust_brightness,
    "salt_pepper": _salt_and_pepper,
    "median": median_blur,
    "box": box_blur,
    "gaussian": gaussian_blur_2d,
    "gray": rgb_to_gray,
    "rgb_to_hsv": rgb_to_hsv,
    "hsv_to_rgb": hsv_to_rgb,
    "rgb_to_hsl": rgb_to_hsl,
    "hsl_to_rgb": hsl_to_rgb,
    "equalize": histogram_equalization,
    "threshold": thresholding,
}
IMAGE_FILTERS.update({name: _with_grayscale(fn) for name, fn in EDGE_DETECTORS.items()})

VOLUME_FILTERS: Dict[str, Callable[..., Any]] = {
    "median_3d": median_blur_3d,
    "gaussian_3d": gaussian_blur_3d,
}


def _call_with_supported_kwargs(fn: Callable[..., Any], target, params: Dict[str, Any]) -> Any:
    """
    Call ``fn(target, **params)`` dropping keys its signature does not accept.

    Dropped keys are logged so a misspelt parameter is visible. A missing
    required parameter raises ValueError naming the filter.
    """
    sig = inspect.signature(fn)
    accepted = {
        name for name, p in sig.parameters.items()
        if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    }
    kwargs = {k: v for k, v in params.items() if k in accepted}
    ignored = sorted(set(params) - set(kwargs))
    if ignored:
        logger.warning("Ignoring unsupported parameter(s) for '%s': %s", fn.__name__, ", ".join(ignored))
    try:
        sig.bind(target, **kwargs)
    except TypeError as exc:
        raise ValueError(f"Invalid parameters for filter '{fn.__name__}': {exc}") from exc
    return fn(target, **kwargs)


def apply_filter_step(target: Union[PixelBuffer, VolumeStack], step: FilterStepDTO) -> Any:
    """
    Apply a named filter to an image (2D filters) or a volume (3D filters).

    Raises:
        ValueError: Unknown filter name, or a 2D filter given a volume / vice versa.
    """
    if isinstance(target, VolumeStack):
        registry, kind = VOLUME_FILTERS, "volume"
    else:
        registry, kind = IMAGE_FILTERS, "image"

    fn = registry.get(step.name)
    if fn is None:
        allowed = ", ".join(sorted(registry))
        raise ValueError(f"Unknown {kind} filter '{step.name}'. Expected one of: {allowed}.")

    logger.debug("Applying %s filter '%s' with %s", kind, step.name, step.params)
    return _call_with_supported_kwargs(fn, target, step.params)
