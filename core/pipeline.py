"""
Shared pipelines used by the CLI and tests.

Image pipeline:   load -> filter -> export
Volume pipeline:  load -> filter3d -> reduce -> filter2d -> export
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from core.base import PixelBuffer, VolumeStack
from core.dag import DAGNode, SimpleDAGExecutor
from core.dto import FilterStepDTO, ImageProcessDTO, VolumeProcessDTO
from core.progress import ProgressBus, ProgressCallback

logger = logging.getLogger(__name__)

IMAGE_STAGE_ORDER = ("load", "filter", "export")
VOLUME_STAGE_ORDER = ("load", "filter3d", "reduce", "filter2d", "export")


def _noop_progress(_percent: int, _message: str) -> None:
    """Default no-op progress callback."""
    return


def _stage_progress_factory(progress_bus: Optional[ProgressBus]) -> Callable[[str], ProgressCallback]:
    def factory(stage: str) -> ProgressCallback:
        if progress_bus is None:
            return _noop_progress
        return progress_bus.stage_callback(stage)

    return factory


def apply_filters(target: Union[PixelBuffer, VolumeStack], steps: Sequence[FilterStepDTO],
                  progress: ProgressCallback = _noop_progress) -> Union[PixelBuffer, VolumeStack]:
    """Apply filter steps in order, in place, and return the same object."""
    from processors import apply_filter_step

    total = max(len(steps), 1)
    for i, step in enumerate(steps):
        progress(int(100 * i / total), f"Applying {step.name}...")
        apply_filter_step(target, step)
    progress(100, f"{len(steps)} filter(s) applied.")
    return target


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def _stage_load_image(dto: ImageProcessDTO, progress: ProgressCallback) -> PixelBuffer:
    from loaders import ImageLoader

    if not dto.input_path:
        raise ValueError("input_path is required for an image run.")
    return ImageLoader().load(dto.input_path, callback=progress)


def _stage_load_volume(dto: VolumeProcessDTO, progress: ProgressCallback) -> VolumeStack:
    loader_type = (dto.loader_type or "directory").lower()
    if loader_type == "dummy":
        from loaders import DummyLoader

        volume = DummyLoader(seed=0).load(dto.input_path, callback=progress)
        if dto.z_range:
            volume = volume.slab(*dto.z_range)
        return volume

    if loader_type == "directory":
        from loaders import VolumeLoader

        if not dto.input_path:
            raise ValueError("input_path is required when loader_type='directory'.")
        z1, z2 = dto.z_range if dto.z_range else (None, None)
        return VolumeLoader().load(dto.input_path, callback=progress, z1=z1, z2=z2)

    raise ValueError(f"Unknown loader_type: {dto.loader_type!r}. Supported: 'directory', 'dummy'.")


def _stage_reduce(volume: VolumeStack, dto: VolumeProcessDTO,
                  progress: ProgressCallback) -> Optional[PixelBuffer]:
    """Collapse the volume into one image with a projection or a slice."""
    reduction = dto.reduction.lower()
    if reduction == "none":
        progress(100, "No reduction requested.")
        return None

    if reduction == "projection":
        from processors import project

        progress(0, f"Computing {dto.projection.upper()}...")
        image = project(volume, dto.projection, filter_method=dto.filter_method,
                        kernel_size=dto.kernel_size, sigma=dto.sigma, callback=progress)
        progress(100, f"{dto.projection.upper()} complete.")
        return image

    if reduction == "slice":
        from processors import SliceType, slice_volume

        slice_type = SliceType(dto.slice_type.lower())
        bound = volume.height if slice_type is SliceType.XZ else volume.width
        if not 0 <= dto.slice_index < bound:
            raise ValueError(
                f"Slice index {dto.slice_index} out of range [0, {bound - 1}] for {slice_type.name}."
            )
        image = slice_volume(volume, dto.slice_index, slice_type)
        progress(100, f"{slice_type.name} slice {dto.slice_index} extracted.")
        return image

    raise ValueError(f"Unknown reduction {dto.reduction!r}. Supported: 'projection', 'slice', 'none'.")


def _stage_export_image(image: PixelBuffer, output_path: Optional[str],
                        progress: ProgressCallback) -> list[str]:
    from exporters import save_image

    if not output_path:
        progress(100, "No output path; skipping export.")
        return []
    progress(0, f"Saving {Path(output_path).name}...")
    saved = save_image(image, output_path)
    progress(100, "Export complete." if saved else "Export failed.")
    return [output_path] if saved else []


def _stage_export_volume(deps: dict[str, Any], dto: VolumeProcessDTO,
                         progress: ProgressCallback) -> list[str]:
    from exporters import export_stack, save_image, save_volume

    exported: list[str] = []
    image = deps.get("filter2d")
    formats = tuple(fmt.lower() for fmt in dto.export_formats)

    if image is not None and dto.output_path and "png" in formats:
        progress(10, f"Saving {Path(dto.output_path).name}...")
        if save_image(image, dto.output_path):
            exported.append(dto.output_path)

    if dto.volume_output_dir:
        volume = deps["filter3d"]
        progress(40, f"Saving slices to {dto.volume_output_dir}...")
        exported.extend(save_volume(volume, dto.volume_output_dir))
        out_dir = Path(dto.volume_output_dir)
        for fmt in formats:
            if fmt in ("tiff", "npy"):
                exported.append(export_stack(volume, str(out_dir / f"volume.{'tif' if fmt == 'tiff' else fmt}")))

    progress(100, "Export complete.")
    return exported


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_image_pipeline(dto: ImageProcessDTO, *, input_image: Optional[PixelBuffer] = None,
                         progress_bus: Optional[ProgressBus] = None) -> SimpleDAGExecutor:
    """
    Build the load -> filter -> export DAG for a single image.

    Args:
        dto: Run configuration.
        input_image: Optional preloaded image; the load stage returns it as is.
        progress_bus: Optional progress event bus.
    """
    stage_progress = _stage_progress_factory(progress_bus)
    dag = SimpleDAGExecutor()
    dag.add(DAGNode(
        name="load",
        fn=lambda _deps: input_image if input_image is not None else _stage_load_image(dto, stage_progress("load")),
    ))
    dag.add(DAGNode(
        name="filter",
        fn=lambda deps: apply_filters(deps["load"], dto.filters, stage_progress("filter")),
        depends_on=("load",),
    ))
    dag.add(DAGNode(
        name="export",
        fn=lambda deps: _stage_export_image(deps["filter"], dto.output_path, stage_progress("export")),
        depends_on=("filter",),
    ))
    return dag


def build_volume_pipeline(dto: VolumeProcessDTO, *, input_volume: Optional[VolumeStack] = None,
                          include_export: bool = True,
                          progress_bus: Optional[ProgressBus] = None) -> SimpleDAGExecutor:
    """
    Build the load -> filter3d -> reduce -> filter2d -> export DAG for a volume.

    Args:
        dto: Run configuration.
        input_volume: Optional preloaded volume; the load stage returns it as is.
        include_export: Whether to add the export stage.
        progress_bus: Optional progress event bus.
    """
    stage_progress = _stage_progress_factory(progress_bus)

    def filter2d(deps: dict[str, Any]) -> Optional[PixelBuffer]:
        image = deps["reduce"]
        if image is None:
            return None
        return apply_filters(image, dto.image_filters, stage_progress("filter2d"))

    dag = SimpleDAGExecutor()
    dag.add(DAGNode(
        name="load",
        fn=lambda _deps: input_volume if input_volume is not None else _stage_load_volume(dto, stage_progress("load")),
    ))
    dag.add(DAGNode(
        name="filter3d",
        fn=lambda deps: apply_filters(deps["load"], dto.volume_filters, stage_progress("filter3d")),
        depends_on=("load",),
    ))
    dag.add(DAGNode(
        name="reduce",
        fn=lambda deps: _stage_reduce(deps["filter3d"], dto, stage_progress("reduce")),
        depends_on=("filter3d",),
    ))
    dag.add(DAGNode(name="filter2d", fn=filter2d, depends_on=("reduce",)))

    if include_export:
        dag.add(DAGNode(
            name="export",
            fn=lambda deps: _stage_export_volume(deps, dto, stage_progress("export")),
            depends_on=("filter3d", "filter2d"),
        ))
    return dag


def run_image_pipeline(dto: ImageProcessDTO, *, input_image: Optional[PixelBuffer] = None,
                       progress_bus: Optional[ProgressBus] = None,
                       dag_progress: Optional[ProgressCallback] = None) -> dict[str, Any]:
    """Execute the image pipeline and return stage outputs keyed by stage name."""
    dag = build_image_pipeline(dto, input_image=input_image, progress_bus=progress_bus)
    return dag.run(progress=dag_progress)


def run_volume_pipeline(dto: VolumeProcessDTO, *, input_volume: Optional[VolumeStack] = None,
                        include_export: bool = True,
                        progress_bus: Optional[ProgressBus] = None,
                        dag_progress: Optional[ProgressCallback] = None) -> dict[str, Any]:
    """Execute the volume pipeline and return stage outputs keyed by stage name."""
    dag = build_volume_pipeline(dto, input_volume=input_volume, include_export=include_export,
                                progress_bus=progress_bus)
    return dag.run(progress=dag_progress)


__all__ = [
    "IMAGE_STAGE_ORDER",
    "VOLUME_STAGE_ORDER",
    "apply_filters",
    "build_image_pipeline",
    "build_volume_pipeline",
    "run_image_pipeline",
    "run_volume_pipeline",
]
