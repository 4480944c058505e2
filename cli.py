"""
Headless CLI entry point for the Image & Volume Processing Toolkit.

Two subcommands share the DAG pipelines in ``core.pipeline``:

    python cli.py image  --input a.png --filter gaussian:kernel_size=5 --output out.png
    python cli.py volume --input slices/ --z-range 1 10 --projection mip --output mip.png
    python cli.py volume --input slices/ --slice xz:50 --output xz.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Optional, Sequence

from config import (
    DEFAULT_FILTER_METHOD,
    DEFAULT_KERNEL_SIZE,
    DEFAULT_SIGMA,
    FILTER_METHODS,
    LOG_FORMAT,
)
from core import (
    FilterStepDTO,
    ImageProcessDTO,
    VolumeProcessDTO,
    run_image_pipeline,
    run_volume_pipeline,
)
from core.progress import LoggingProgressObserver, ProgressBus, TerminalProgressObserver
from processors.utils import adjust_kernel_size

logger = logging.getLogger("cli")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def _parse_slice(text: str) -> tuple[str, int]:
    """Parse ``xz:50`` / ``yz:12`` into ``("xz", 50)``."""
    kind, sep, index = text.partition(":")
    kind = kind.strip().lower()
    if not sep or kind not in ("xz", "yz"):
        raise argparse.ArgumentTypeError(f"Expected xz:N or yz:N, got '{text}'")
    try:
        return kind, int(index)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Slice index must be an integer, got '{index}'") from exc


def _parse_filter(text: str) -> FilterStepDTO:
    try:
        return FilterStepDTO.parse(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _normalize_steps(steps: Sequence[FilterStepDTO]) -> tuple[FilterStepDTO, ...]:
    """Round even kernel sizes down to the next odd value before running."""
    normalized = []
    for step in steps:
        k = step.params.get("kernel_size")
        if isinstance(k, int):
            params = dict(step.params)
            params["kernel_size"] = adjust_kernel_size(k)
            step = FilterStepDTO(name=step.name, params=params)
        normalized.append(step)
    return tuple(normalized)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python cli.py",
        description="Headless image and volume processor",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    parser.add_argument("--quiet", action="store_true", help="Send progress to the log instead of a terminal bar.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        metavar="FILE",
        help="Path to YAML or JSON config file. Overrides other flags.",
    )
    common.add_argument("--input", metavar="PATH", default="", help="Input image file or slice directory.")
    common.add_argument("--output", metavar="FILE", default=None, help="Output image path.")
    common.add_argument(
        "--filter",
        metavar="NAME[:K=V,...]",
        dest="filters",
        action="append",
        type=_parse_filter,
        default=[],
        help="2D filter step, repeatable, e.g. gaussian:kernel_size=5,sigma=1.5.",
    )
    common.add_argument("--dry-run", action="store_true", help="Print resolved DTO without running.")

    subparsers.add_parser(
        "image",
        parents=[common],
        help="Filter a single image.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    volume = subparsers.add_parser(
        "volume",
        parents=[common],
        help="Reduce a slice directory to one image.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    volume.add_argument("--loader", metavar="TYPE", default="directory", help="Loader type: directory | dummy.")
    volume.add_argument("--z-range", metavar=("Z1", "Z2"), nargs=2, type=int, default=None,
                        help="1-based inclusive slab of the sorted slice files.")
    volume.add_argument(
        "--volume-filter",
        metavar="NAME[:K=V,...]",
        dest="volume_filters",
        action="append",
        type=_parse_filter,
        default=[],
        help="3D filter step, repeatable: median_3d | gaussian_3d.",
    )
    reduction = volume.add_mutually_exclusive_group()
    reduction.add_argument("--projection", metavar="KIND", default=None, help="Projection: mip | minip | aip.")
    reduction.add_argument("--slice", metavar="xz:N|yz:N", type=_parse_slice, default=None,
                           help="Extract one XZ or YZ plane.")
    volume.add_argument(
        "--filter-method",
        metavar="N",
        type=int,
        default=DEFAULT_FILTER_METHOD,
        choices=sorted(FILTER_METHODS),
        help="Projection pre-filter: 1 gaussian | 2 median | 3 none.",
    )
    volume.add_argument("--kernel-size", metavar="K", type=int, default=DEFAULT_KERNEL_SIZE,
                        help="Projection pre-filter kernel size.")
    volume.add_argument("--sigma", metavar="S", type=float, default=DEFAULT_SIGMA,
                        help="Projection pre-filter Gaussian sigma.")
    volume.add_argument("--volume-output", metavar="DIR", default=None,
                        help="Also write the filtered slices as image{i}.png (0-based) under DIR.")
    volume.add_argument(
        "--formats",
        metavar="FMT",
        nargs="+",
        default=["png"],
        help="Export formats: png tiff npy (space-separated).",
    )
    return parser


def _resolve_image_dto(args: argparse.Namespace, parser: argparse.ArgumentParser) -> ImageProcessDTO:
    """Resolve DTO from config file or inline CLI flags."""
    if args.config:
        return ImageProcessDTO.from_file(args.config)
    if not args.input:
        parser.error("Provide --config FILE or --input PATH")
    return ImageProcessDTO(
        input_path=args.input,
        filters=_normalize_steps(args.filters),
        output_path=args.output,
    )


def _resolve_volume_dto(args: argparse.Namespace, parser: argparse.ArgumentParser) -> VolumeProcessDTO:
    """Resolve DTO from config file or inline CLI flags."""
    if args.config:
        return VolumeProcessDTO.from_file(args.config)
    if not args.input and args.loader == "directory":
        parser.error("Provide --config FILE or --input DIR")

    if args.slice is not None:
        reduction, slice_type, slice_index = "slice", args.slice[0], args.slice[1]
    else:
        reduction, slice_type, slice_index = "projection", "xz", 0

    return VolumeProcessDTO(
        input_path=args.input,
        loader_type=args.loader,
        z_range=tuple(args.z_range) if args.z_range else None,
        volume_filters=_normalize_steps(args.volume_filters),
        reduction=reduction,
        projection=(args.projection or "mip").lower(),
        filter_method=args.filter_method,
        kernel_size=adjust_kernel_size(args.kernel_size),
        sigma=args.sigma,
        slice_type=slice_type,
        slice_index=slice_index,
        image_filters=_normalize_steps(args.filters),
        output_path=args.output,
        volume_output_dir=args.volume_output,
        export_formats=tuple(args.formats),
    )


def run_batch(dto, progress_bus: Optional[ProgressBus] = None) -> dict:
    """
    Execute the image or volume pipeline using the shared DAG engine.

    Returns:
        Dict keyed by stage name containing each stage output.
    """
    if progress_bus is None:
        progress_bus = ProgressBus().subscribe(TerminalProgressObserver())
    runner = run_volume_pipeline if isinstance(dto, VolumeProcessDTO) else run_image_pipeline

    t_start = time.perf_counter()
    results = runner(dto, progress_bus=progress_bus, dag_progress=progress_bus.dag_callback())
    elapsed = time.perf_counter() - t_start

    print(f"\nPipeline complete in {elapsed:.2f}s")
    exported = results.get("export", [])
    if exported:
        print("Exported files:")
        for path in exported:
            print(f"  {path}")
    return results


def _expects_image_output(dto) -> bool:
    if not dto.output_path:
        return False
    if isinstance(dto, ImageProcessDTO):
        return True
    return dto.reduction != "none" and "png" in dto.export_formats


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "image":
        dto = _resolve_image_dto(args, parser)
    else:
        dto = _resolve_volume_dto(args, parser)

    if args.dry_run:
        print(f"Resolved {type(dto).__name__}:")
        print(json.dumps(dto.to_dict(), indent=2))
        return 0

    try:
        observer = LoggingProgressObserver() if args.quiet else TerminalProgressObserver()
        results = run_batch(dto, ProgressBus().subscribe(observer))
    except KeyboardInterrupt:
        print("\nAborted by user.")
        return 1
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Pipeline failed: %s: %s", type(exc).__name__, exc)
        return 1

    if _expects_image_output(dto) and dto.output_path not in results.get("export", []):
        logger.error("Failed to save %s", dto.output_path)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
