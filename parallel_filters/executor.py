"""
Fork-join execution of work units over a joblib worker pool.

Workers write their filtered rows straight into the shared output buffer.
Every unit owns a disjoint block of that buffer, so no locking is needed:
the only synchronisation point is joblib returning once all units ran.
"""
import logging
import sys
import time
from multiprocessing import shared_memory

import numpy as np
from joblib import Parallel, delayed

from .config import BACKENDS, DEFAULT_BACKEND
from .convolution import compute_rows
from .errors import AllocationFailure, DimensionMismatch
from .image import Image
from .partitioning import check_coverage

logger = logging.getLogger(__name__)

# only the creating process should track the segments for cleanup
_ATTACH_KWARGS = {"track": False} if sys.version_info >= (3, 13) else {}


def attach_shared_memory(name):
    """Open an existing segment by name without registering it for cleanup where supported."""
    return shared_memory.SharedMemory(name=name, **_ATTACH_KWARGS)


def process_unit(source, kernel, out, unit):
    """Filter one work unit of *source* into *out* (both shared arrays)."""
    compute_rows(source, kernel, out, unit.start, unit.end, unit.col_start, unit.col_end)
    return unit.rows


def process_unit_shm(shm_input_name, shm_output_name, shape, kernel, unit):
    """Same as process_unit, attaching to the buffers by shared memory name."""
    shm_input = attach_shared_memory(shm_input_name)
    shm_output = attach_shared_memory(shm_output_name)
    source = out = None
    try:
        source = np.ndarray(shape, dtype=np.uint8, buffer=shm_input.buf)
        source.flags.writeable = False
        out = np.ndarray(shape, dtype=np.uint8, buffer=shm_output.buf)
        rows = process_unit(source, kernel, out, unit)
    finally:
        # views must be gone before the mappings can close
        del source, out
        shm_input.close()
        shm_output.close()
    return rows


class ParallelExecutor:
    """Runs a partitioner's work units concurrently and joins before returning.

    Args:
        backend: "threads" (shared numpy buffers, numpy releases the GIL while
            filtering) or "processes" (buffers placed in shared memory).
    """

    def __init__(self, backend=DEFAULT_BACKEND):
        if backend not in BACKENDS:
            raise ValueError(f"unknown backend {backend!r}, expected one of {BACKENDS}")
        self.backend = backend

    def run(self, image, kernel, partitioner, worker_count) -> Image:
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")

        units = partitioner.partition(image.height, worker_count, width=image.width)
        check_coverage(units, image.height, image.width)
        n_jobs = min(worker_count, len(units))
        logger.debug(
            "dispatching %d units of %r to %d %s workers",
            len(units), kernel, n_jobs, self.backend,
        )

        t0 = time.perf_counter()
        if self.backend == "threads":
            output = self._run_threads(image, kernel, partitioner, units, n_jobs)
        else:
            output = self._run_processes(image, kernel, partitioner, units, n_jobs)
        logger.info(
            "filtered %dx%dx%d image in %.4f s (%d units, %d workers)",
            image.width, image.height, image.channels,
            time.perf_counter() - t0, len(units), n_jobs,
        )
        return output

    @staticmethod
    def _parallel(partitioner, n_jobs, **kwargs):
        return Parallel(
            n_jobs=n_jobs,
            batch_size=partitioner.batch_size,
            pre_dispatch=partitioner.pre_dispatch,
            **kwargs,
        )

    def _run_threads(self, image, kernel, partitioner, units, n_jobs):
        source = image.read_only().pixels
        output = Image.blank_like(image)
        if output.shape != image.shape:
            raise DimensionMismatch(f"output {output.shape} does not match source {image.shape}")

        self._parallel(partitioner, n_jobs, prefer="threads", require="sharedmem")(
            delayed(process_unit)(source, kernel, output.pixels, unit)
            for unit in units
        )
        return output

    def _run_processes(self, image, kernel, partitioner, units, n_jobs):
        shape = image.shape
        nbytes = image.pixels.nbytes
        try:
            shm_input = shared_memory.SharedMemory(create=True, size=nbytes)
        except OSError as exc:
            raise AllocationFailure(f"cannot allocate {nbytes} bytes of shared memory") from exc
        try:
            shm_output = shared_memory.SharedMemory(create=True, size=nbytes)
        except OSError as exc:
            shm_input.close()
            shm_input.unlink()
            raise AllocationFailure(f"cannot allocate {nbytes} bytes of shared memory") from exc

        input_arr = output_arr = None
        try:
            input_arr = np.ndarray(shape, dtype=np.uint8, buffer=shm_input.buf)
            np.copyto(input_arr, image.pixels)
            output_arr = np.ndarray(shape, dtype=np.uint8, buffer=shm_output.buf)
            output_arr[:] = 0

            self._parallel(partitioner, n_jobs, prefer="processes")(
                delayed(process_unit_shm)(shm_input.name, shm_output.name, shape, kernel, unit)
                for unit in units
            )
            # copy out before the blocks go away
            output = Image(np.array(output_arr))
        finally:
            del input_arr, output_arr
            shm_input.close()
            shm_input.unlink()
            shm_output.close()
            shm_output.unlink()
        return output
