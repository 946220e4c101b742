#!/usr/bin/env python3
"""
Benchmark script comparing the sequential baseline with the static and
dynamic partitioning strategies over several worker counts.
"""
import argparse
import json
import multiprocessing
import time

import numpy as np

from parallel_filters import Image, Kernel, KernelRegistry, apply_convolution, compute_rows
from parallel_filters.config import configure_logging
from parallel_filters.kernels import KERNEL_GAUSSIAN, KERNEL_GAUSSIAN_5x5, KERNEL_GAUSSIAN_7x7

BENCHMARK_KERNELS = {
    3: KERNEL_GAUSSIAN,
    5: KERNEL_GAUSSIAN_5x5,
    7: KERNEL_GAUSSIAN_7x7,
}


def build_registry():
    """Normalised gaussians keyed by side length, e.g. 'gaussian7x7'."""
    return KernelRegistry({
        f"gaussian{k}x{k}": Kernel.from_array(arr, normalize=True, name=f"gaussian{k}x{k}")
        for k, arr in BENCHMARK_KERNELS.items()
    })


def make_test_image(size, channels=3, seed=0):
    rng = np.random.default_rng(seed)
    return Image(rng.integers(0, 256, size=(size, size, channels), dtype=np.uint8))


def apply_sequential(image, kernel):
    """Whole image in one call on the calling thread."""
    out = np.zeros(image.shape, dtype=np.uint8)
    compute_rows(image.pixels, kernel, out, 0, image.height)
    return Image(out)


def timed(fn, *args, **kwargs):
    t0 = time.perf_counter()
    out = fn(*args, **kwargs)
    t1 = time.perf_counter()
    return out, (t1 - t0)


def benchmark_convolution(image, kernel_name, registry, worker_counts, strategies=("static", "dynamic"),
                          n_runs=3, chunk_rows=8):
    """Time every configuration and verify all outputs are identical.

    Returns (entries, identical) where entries is a list of result dicts.
    """
    kernel = registry.lookup(kernel_name)
    entries = []

    print(f"Image size: {image.width}x{image.height}x{image.channels}")
    print(f"Kernel: {kernel_name} ({kernel.size}x{kernel.size})")
    print("-" * 70)

    times = []
    for _ in range(n_runs):
        baseline, elapsed = timed(apply_sequential, image, kernel)
        times.append(elapsed)
    avg_seq = float(np.mean(times))
    print(f"{'sequential':<24} {avg_seq:.4f} s")
    entries.append(_entry(image, kernel, "sequential", 1, avg_seq))

    identical = True
    for strategy in strategies:
        for workers in worker_counts:
            times = []
            for _ in range(n_runs):
                result, elapsed = timed(
                    apply_convolution, image, kernel_name, workers, strategy,
                    registry=registry, chunk_rows=chunk_rows,
                )
                times.append(elapsed)
            avg = float(np.mean(times))
            same = result == baseline
            identical = identical and same
            print(f"{strategy + ' x' + str(workers):<24} {avg:.4f} s  "
                  f"({avg_seq / avg:.2f}x){'' if same else '  MISMATCH'}")
            entries.append(_entry(image, kernel, strategy, workers, avg))

    return entries, identical


def _entry(image, kernel, strategy, workers, seconds):
    return {
        "image_size": image.height,
        "kernel_size": kernel.size,
        "strategy": strategy,
        "workers": workers,
        "seconds": seconds,
    }


def build_parser():
    p = argparse.ArgumentParser(description="Benchmark the convolution strategies.")
    p.add_argument("--sizes", type=int, nargs="+", default=[256, 512])
    p.add_argument("--kernel-sizes", type=int, nargs="+", default=sorted(BENCHMARK_KERNELS),
                   choices=sorted(BENCHMARK_KERNELS))
    p.add_argument("--workers", type=int, nargs="+", default=[1, 2, 4, multiprocessing.cpu_count()])
    p.add_argument("--runs", type=int, default=3)
    p.add_argument("--chunk-rows", type=int, default=8)
    p.add_argument("--output", default="benchmark_results.json")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    registry = build_registry()

    print("=" * 70)
    print("CONVOLUTION BENCHMARK: sequential vs static vs dynamic")
    print(f"CPU cores: {multiprocessing.cpu_count()}")
    print("=" * 70)

    results = []
    all_identical = True
    for size in args.sizes:
        image = make_test_image(size)
        for k in args.kernel_sizes:
            entries, identical = benchmark_convolution(
                image, f"gaussian{k}x{k}", registry, sorted(set(args.workers)),
                n_runs=args.runs, chunk_rows=args.chunk_rows,
            )
            results.extend(entries)
            all_identical = all_identical and identical
            print()

    data = {
        "metadata": {
            "cpu_count": multiprocessing.cpu_count(),
            "runs": args.runs,
            "chunk_rows": args.chunk_rows,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S"),
        },
        "results": results,
    }
    with open(args.output, "w") as f:
        json.dump(data, f, indent=2)

    print("=" * 70)
    print("VERIFICATION")
    print("=" * 70)
    if all_identical:
        print("✓ All results are identical!")
    else:
        print("⚠ Results differ between strategies")
    print(f"Results saved to {args.output}")
    return 0 if all_identical else 1


if __name__ == "__main__":
    raise SystemExit(main())
