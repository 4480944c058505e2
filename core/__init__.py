"""
Core module containing base classes and data structures.
"""

from core.base import PixelBuffer, VolumeStack, BaseLoader, validate_slab_range
from core.dto import FilterStepDTO, ImageProcessDTO, VolumeProcessDTO
from core.dag import DAGNode, SimpleDAGExecutor
from core.progress import (
    ProgressEvent,
    ProgressObserver,
    ProgressBus,
    TerminalProgressObserver,
    LoggingProgressObserver,
)
from core.pipeline import (
    IMAGE_STAGE_ORDER,
    VOLUME_STAGE_ORDER,
    apply_filters,
    build_image_pipeline,
    build_volume_pipeline,
    run_image_pipeline,
    run_volume_pipeline,
)

__all__ = [
    'PixelBuffer', 'VolumeStack', 'BaseLoader', 'validate_slab_range',
    'FilterStepDTO', 'ImageProcessDTO', 'VolumeProcessDTO',
    'DAGNode', 'SimpleDAGExecutor',
    'ProgressEvent', 'ProgressObserver', 'ProgressBus', 'TerminalProgressObserver',
    'LoggingProgressObserver',
    'IMAGE_STAGE_ORDER', 'VOLUME_STAGE_ORDER', 'apply_filters',
    'build_image_pipeline', 'build_volume_pipeline',
    'run_image_pipeline', 'run_volume_pipeline',
]
