"""Command-line interface: sort a directory of images by dominant color."""

import argparse
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from loguru import logger

from huesort.config import Config, config
from huesort.exceptions import HueSortError
from huesort.models import BatchResult, ImageSource, PipelineConfig, Progress
from huesort.services.export import build_animation, build_zip
from huesort.services.supervisor import run_batch
from huesort.utils.logging import configure_logging


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for a sorting run."""
    parser = argparse.ArgumentParser(
        description="Order a directory of images as a hue gradient and rename them."
    )
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Directory containing images to sort",
    )
    parser.add_argument(
        "--zip",
        default=None,
        metavar="OUT.zip",
        help="Write the renamed images to this ZIP archive",
    )
    parser.add_argument(
        "--gif",
        default=None,
        metavar="OUT.gif",
        help="Write the ordered images to this animated GIF",
    )
    parser.add_argument(
        "--strategy",
        choices=Config.STRATEGIES,
        default=config.DEFAULT_STRATEGY,
        help="Dominant color strategy (default: %(default)s)",
    )
    parser.add_argument(
        "--template",
        default=config.DEFAULT_TEMPLATE,
        help="Filename template, e.g. '{index:03}_{hue}_{basename}' (default: %(default)s)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.KMEANS_SEED,
        help="Random seed for the kmeans strategy",
    )
    parser.add_argument(
        "--rename-neutral",
        action="store_true",
        default=config.RENAME_NEUTRAL,
        help="Apply the template to neutral (gray) images as well",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for pipeline diagnostics (default: %(default)s)",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def find_images(directory: Path) -> List[Path]:
    """Image files directly inside *directory*, by name."""
    return sorted(
        path for path in directory.iterdir()
        if path.is_file() and path.suffix.lower() in Config.SUPPORTED_EXTENSIONS
    )


def load_sources(paths: Iterable[Path]) -> List[ImageSource]:
    sources = []
    for path in paths:
        stat = path.stat()
        sources.append(ImageSource(
            data=path.read_bytes(),
            name=path.name,
            size=stat.st_size,
            modified=int(stat.st_mtime * 1000),
        ))
    return sources


def _print_progress(progress: Progress) -> None:
    print(f"\r[{progress.current}/{progress.total}] analyzing...", end="", file=sys.stderr, flush=True)


def print_table(result: BatchResult) -> None:
    """Print the ordered batch, one row per image."""
    print(f"{'#':>4}  {'hue':>6}  {'chroma':>6}  {'light':>6}  {'name':<40} original")
    for position, record in enumerate(result.records, start=1):
        if record.is_error:
            print(f"{'-':>4}  {'':>6}  {'':>6}  {'':>6}  {'(failed)':<40} {record.original_name}: {record.error}")
            continue
        signature = record.signature
        hue = "gray" if signature.is_neutral else f"{signature.hue:.1f}"
        print(f"{position:>4}  {hue:>6}  {signature.chroma:>6.2f}  {signature.lightness:>6.2f}  "
              f"{record.assigned_name or '':<40} {record.original_name}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    input_dir = Path(args.input)
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        return 2

    if not Config.validate_template(args.template):
        print("Error: template must be non-empty and contain no path separators", file=sys.stderr)
        return 2

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        return 2

    pipeline = PipelineConfig.from_settings(config).with_strategy(args.strategy, seed=args.seed)
    pipeline = PipelineConfig(
        strategy=pipeline.strategy,
        filename_template=args.template,
        max_dimension=pipeline.max_dimension,
        alpha_threshold=pipeline.alpha_threshold,
        rename_neutral=args.rename_neutral,
        max_concurrency=pipeline.max_concurrency,
    )

    result = run_batch(load_sources(images), pipeline, on_progress=_print_progress)
    print(file=sys.stderr)
    print_table(result)

    try:
        if args.zip:
            Path(args.zip).write_bytes(build_zip(result.records))
            print(f"Wrote {args.zip}")
        if args.gif:
            Path(args.gif).write_bytes(build_animation(result.records))
            print(f"Wrote {args.gif}")
    except HueSortError as e:
        logger.error(f"Export failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
