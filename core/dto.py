"""
Data Transfer Objects (DTOs) for headless image and volume processing runs.

Design rules
------------
* All DTOs are immutable (frozen=True). Pipelines read them, never mutate them.
* Inputs are validated by whoever builds the DTO (CLI, tests); the processing
  core receives finished requests and never prompts or retries.
* ``from_dict`` / ``from_file`` keep deserialisation in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from config import (
    DEFAULT_FILTER_METHOD,
    DEFAULT_KERNEL_SIZE,
    DEFAULT_SIGMA,
)


def _parse_scalar(text: str) -> Any:
    """Best-effort conversion of a CLI token to int, float or bool."""
    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text.strip()


def _load_mapping(path: str) -> Dict[str, Any]:
    if path.endswith(".json"):
        import json
        with open(path, encoding="utf-8") as fh:
            return json.load(fh) or {}
    import yaml  # soft dependency, only needed for config files
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Filter step DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilterStepDTO:
    """
    One named filter invocation, e.g. ``gaussian`` with
    ``{"kernel_size": 5, "sigma": 1.5}``.
    """

    name:   str
    params: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def parse(text: str) -> "FilterStepDTO":
        """
        Build from ``name`` or ``name:key=value,key=value``.

        Example: ``"gaussian:kernel_size=5,sigma=1.5"``.
        """
        name, _, arg_text = text.partition(":")
        params: Dict[str, Any] = {}
        for item in filter(None, (part.strip() for part in arg_text.split(","))):
            key, sep, value = item.partition("=")
            if not sep:
                raise ValueError(f"Malformed filter parameter '{item}' in '{text}'")
            params[key.strip()] = _parse_scalar(value)
        return FilterStepDTO(name=name.strip().lower(), params=params)

    @staticmethod
    def from_dict(d: Any) -> "FilterStepDTO":
        if isinstance(d, str):
            return FilterStepDTO.parse(d)
        params = dict(d.get("params") or {})
        params.update({k: v for k, v in d.items() if k not in ("name", "params")})
        return FilterStepDTO(name=str(d["name"]).lower(), params=params)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "params": dict(self.params)}


def _steps(raw) -> Tuple[FilterStepDTO, ...]:
    return tuple(FilterStepDTO.from_dict(item) for item in (raw or ()))


# ---------------------------------------------------------------------------
# Image processing DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageProcessDTO:
    """
    Immutable configuration for a single-image run: load -> filters -> export.
    """

    input_path:   str                        = ""
    filters:      Tuple[FilterStepDTO, ...]  = ()
    output_path:  Optional[str]              = None

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ImageProcessDTO":
        return ImageProcessDTO(
            input_path  = str(d.get("input_path", "")),
            filters     = _steps(d.get("filters")),
            output_path = d.get("output_path"),
        )

    @staticmethod
    def from_file(path: str) -> "ImageProcessDTO":
        """Load from a YAML or JSON file (JSON when the name ends in .json)."""
        return ImageProcessDTO.from_dict(_load_mapping(path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_path":  self.input_path,
            "filters":     [step.to_dict() for step in self.filters],
            "output_path": self.output_path,
        }


# ---------------------------------------------------------------------------
# Volume processing DTO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VolumeProcessDTO:
    """
    Immutable configuration for a volume run:
    load -> 3D filters -> projection or slice -> 2D filters -> export.
    """

    # Input
    input_path:     str                        = ""
    loader_type:    str                        = "directory"   # "directory" | "dummy"
    z_range:        Optional[Tuple[int, int]]  = None          # 1-based inclusive slab

    # 3D filters applied to the whole stack
    volume_filters: Tuple[FilterStepDTO, ...]  = ()

    # Reduction
    reduction:      str                        = "projection"  # "projection" | "slice" | "none"
    projection:     str                        = "mip"         # "mip" | "minip" | "aip"
    filter_method:  int                        = DEFAULT_FILTER_METHOD
    kernel_size:    int                        = DEFAULT_KERNEL_SIZE
    sigma:          float                      = DEFAULT_SIGMA
    slice_type:     str                        = "xz"          # "xz" | "yz"
    slice_index:    int                        = 0

    # 2D filters applied to the reduced image
    image_filters:  Tuple[FilterStepDTO, ...]  = ()

    # Output
    output_path:    Optional[str]              = None
    volume_output_dir: Optional[str]           = None
    export_formats: Tuple[str, ...]            = ("png",)      # "png", "tiff", "npy"

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "VolumeProcessDTO":
        z_raw = d.get("z_range")
        return VolumeProcessDTO(
            input_path     = str(d.get("input_path", "")),
            loader_type    = str(d.get("loader_type", "directory")),
            z_range        = (int(z_raw[0]), int(z_raw[1])) if z_raw else None,
            volume_filters = _steps(d.get("volume_filters")),
            reduction      = str(d.get("reduction", "projection")),
            projection     = str(d.get("projection", "mip")),
            filter_method  = int(d.get("filter_method", DEFAULT_FILTER_METHOD)),
            kernel_size    = int(d.get("kernel_size", DEFAULT_KERNEL_SIZE)),
            sigma          = float(d.get("sigma", DEFAULT_SIGMA)),
            slice_type     = str(d.get("slice_type", "xz")),
            slice_index    = int(d.get("slice_index", 0)),
            image_filters  = _steps(d.get("image_filters")),
            output_path    = d.get("output_path"),
            volume_output_dir = d.get("volume_output_dir"),
            export_formats = tuple(d.get("export_formats", ["png"])),
        )

    @staticmethod
    def from_file(path: str) -> "VolumeProcessDTO":
        """Load from a YAML or JSON file (JSON when the name ends in .json)."""
        return VolumeProcessDTO.from_dict(_load_mapping(path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_path":     self.input_path,
            "loader_type":    self.loader_type,
            "z_range":        list(self.z_range) if self.z_range else None,
            "volume_filters": [step.to_dict() for step in self.volume_filters],
            "reduction":      self.reduction,
            "projection":     self.projection,
            "filter_method":  self.filter_method,
            "kernel_size":    self.kernel_size,
            "sigma":          self.sigma,
            "slice_type":     self.slice_type,
            "slice_index":    self.slice_index,
            "image_filters":  [step.to_dict() for step in self.image_filters],
            "output_path":    self.output_path,
            "volume_output_dir": self.volume_output_dir,
            "export_formats": list(self.export_formats),
        }
