"""Entry point used by the CLI and the benchmark."""
import logging

from .config import BACKENDS, DEFAULT_BACKEND, DEFAULT_CHUNK_ROWS, DEFAULT_STRATEGY, DEFAULT_WORKERS, STRATEGIES
from .executor import ParallelExecutor
from .kernels import default_registry
from .partitioning import make_partitioner

logger = logging.getLogger(__name__)


def apply_convolution(image, kernel_name, worker_count=DEFAULT_WORKERS, strategy=DEFAULT_STRATEGY, *,
                      registry=None, backend=DEFAULT_BACKEND, chunk_rows=DEFAULT_CHUNK_ROWS,
                      chunk_columns=None):
    """Filter *image* with the named kernel and return a new image of the same shape.

    Every argument is checked and the kernel resolved before any buffer is
    allocated, so a failing call never writes anything.

    Raises:
        UnknownKernelName: *kernel_name* is not in the registry.
        ValueError: bad worker count, strategy or backend.
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy {strategy!r}, expected one of {STRATEGIES}")
    if backend not in BACKENDS:
        raise ValueError(f"unknown backend {backend!r}, expected one of {BACKENDS}")

    registry = default_registry() if registry is None else registry
    kernel = registry.lookup(kernel_name)

    partitioner = make_partitioner(strategy, chunk_rows=chunk_rows, chunk_columns=chunk_columns)
    logger.debug("applying %s with %s partitioning on %d workers", kernel_name, strategy, worker_count)
    return ParallelExecutor(backend).run(image, kernel, partitioner, worker_count)
