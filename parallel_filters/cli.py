#!/usr/bin/env python3
"""
Command line front end: load an image, filter it, save the result.
"""
import argparse
import logging

from . import config
from .engine import apply_convolution
from .errors import ConvolutionError, UnknownKernelName
from .image import load_image, save_image
from .kernels import default_registry

logger = logging.getLogger(__name__)


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def build_parser():
    filters = default_registry().names()
    p = argparse.ArgumentParser(
        prog="parallel-filters",
        description="Apply a 3x3 convolution filter to an image in parallel.",
    )
    p.add_argument("input_image", help="image file to filter")
    p.add_argument("filter_type", help=f"one of: {', '.join(filters)}")
    p.add_argument("-o", "--output", default=config.DEFAULT_OUTPUT,
                   help=f"output file (default: {config.DEFAULT_OUTPUT})")
    p.add_argument("-w", "--workers", type=_positive_int, default=config.DEFAULT_WORKERS,
                   help="number of workers (default: CPU count)")
    p.add_argument("-s", "--strategy", choices=config.STRATEGIES, default=config.DEFAULT_STRATEGY,
                   help="row partitioning strategy")
    p.add_argument("--backend", choices=config.BACKENDS, default=config.DEFAULT_BACKEND)
    p.add_argument("--chunk-rows", type=_positive_int, default=config.DEFAULT_CHUNK_ROWS,
                   help="rows per chunk for the dynamic strategy")
    p.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    config.configure_logging(args.verbose)

    try:
        img = load_image(args.input_image)
    except (OSError, ValueError) as exc:
        print(f"Error loading image {args.input_image}: {exc}")
        return 1
    print(f"Loaded image: {img.width}x{img.height} with {img.channels} channels")

    print(f"Applying {args.filter_type} filter using {args.strategy} partitioning "
          f"with {args.workers} workers...")
    try:
        result = apply_convolution(
            img, args.filter_type, args.workers, args.strategy,
            backend=args.backend, chunk_rows=args.chunk_rows,
        )
    except UnknownKernelName as exc:
        print(exc)
        return 1
    except ConvolutionError as exc:
        logger.error("filtering failed: %s", exc)
        print(f"Error: {exc}")
        return 1

    try:
        save_image(result, args.output)
    except (OSError, ValueError) as exc:
        print(f"Error saving image {args.output}: {exc}")
        return 1
    print(f"Output saved to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
