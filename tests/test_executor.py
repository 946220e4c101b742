import sys
from multiprocessing import shared_memory
from unittest.mock import patch

import numpy as np
import pytest

from parallel_filters import (
    DynamicGridScheduler,
    Image,
    ParallelExecutor,
    PartitionError,
    StaticRowPartitioner,
    WorkUnit,
    compute_image,
    default_registry,
)
from parallel_filters.executor import attach_shared_memory, process_unit_shm
from parallel_filters.partitioning import Partitioner


class OverlappingPartitioner(Partitioner):

    def partition(self, height, worker_count, width=None):
        return [WorkUnit(0, height), WorkUnit(0, 1)]


@pytest.fixture
def edge():
    return default_registry().lookup("edge")


class TestParallelExecutor:

    @pytest.mark.parametrize("partitioner, workers", [
        (StaticRowPartitioner(), 1),
        (StaticRowPartitioner(), 3),
        (StaticRowPartitioner(), 8),
        (DynamicGridScheduler(), 4),
        (DynamicGridScheduler(chunk_rows=5), 2),
        (DynamicGridScheduler(chunk_rows=2, chunk_columns=4), 3),
    ])
    def test_matches_scalar_reference(self, tiny_random_image, edge, partitioner, workers):
        expected = compute_image(tiny_random_image, edge)
        result = ParallelExecutor().run(tiny_random_image, edge, partitioner, workers)
        assert result == expected

    def test_output_has_input_dimensions(self, random_image, edge):
        result = ParallelExecutor().run(random_image, edge, StaticRowPartitioner(), 4)
        assert result.shape == random_image.shape
        assert result.pixels is not random_image.pixels

    def test_source_is_not_modified(self, random_image, edge):
        before = random_image.to_bytes()
        ParallelExecutor().run(random_image, edge, DynamicGridScheduler(), 4)
        assert random_image.to_bytes() == before

    def test_process_backend_matches_threads(self, random_image, edge):
        threads = ParallelExecutor("threads").run(random_image, edge, StaticRowPartitioner(), 2)
        processes = ParallelExecutor("processes").run(random_image, edge, DynamicGridScheduler(chunk_rows=4), 2)
        assert processes == threads

    def test_rejects_corrupted_partition_before_dispatch(self, random_image, edge):
        with patch("parallel_filters.executor.process_unit") as process_unit:
            with pytest.raises(PartitionError):
                ParallelExecutor().run(random_image, edge, OverlappingPartitioner(), 2)
        process_unit.assert_not_called()

    def test_worker_failure_aborts_run(self, random_image, edge):
        calls = []

        def failing(source, kernel, out, start, end, col_start=0, col_end=None):
            calls.append(start)
            if start == 6:
                raise RuntimeError("boom")

        with patch("parallel_filters.executor.compute_rows", side_effect=failing):
            with pytest.raises(RuntimeError, match="boom"):
                ParallelExecutor().run(random_image, edge, DynamicGridScheduler(chunk_rows=3), 2)
        assert 6 in calls

    def test_rejects_bad_worker_count(self, random_image, edge):
        with pytest.raises(ValueError):
            ParallelExecutor().run(random_image, edge, StaticRowPartitioner(), 0)

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValueError):
            ParallelExecutor("gpu")

    def test_single_row_image(self, edge):
        img = Image(np.arange(12, dtype=np.uint8).reshape(1, 4, 3))
        result = ParallelExecutor().run(img, edge, StaticRowPartitioner(), 4)
        assert result == compute_image(img, edge)


class TestSharedMemoryUnits:

    def test_unit_is_written_through_shared_memory(self, tiny_random_image, edge):
        shape = tiny_random_image.shape
        nbytes = tiny_random_image.pixels.nbytes
        shm_input = shared_memory.SharedMemory(create=True, size=nbytes)
        shm_output = shared_memory.SharedMemory(create=True, size=nbytes)
        try:
            source = np.ndarray(shape, dtype=np.uint8, buffer=shm_input.buf)
            np.copyto(source, tiny_random_image.pixels)
            out = np.ndarray(shape, dtype=np.uint8, buffer=shm_output.buf)
            out[:] = 0

            rows = process_unit_shm(shm_input.name, shm_output.name, shape, edge, WorkUnit(2, 5))

            assert rows == 3
            expected = compute_image(tiny_random_image, edge).pixels
            np.testing.assert_array_equal(out[2:5], expected[2:5])
            assert not out[:2].any() and not out[5:].any()
            del source, out
        finally:
            shm_input.close()
            shm_input.unlink()
            shm_output.close()
            shm_output.unlink()

    @pytest.mark.skipif(sys.version_info < (3, 13), reason="track= needs Python 3.13")
    def test_attach_does_not_track_segment(self):
        with patch("parallel_filters.executor.shared_memory.SharedMemory") as shm_cls:
            attach_shared_memory("psm_segment")
        shm_cls.assert_called_once_with(name="psm_segment", track=False)

    @pytest.mark.skipif(sys.version_info >= (3, 13), reason="older interpreters lack track=")
    def test_attach_on_older_interpreters(self):
        with patch("parallel_filters.executor.shared_memory.SharedMemory") as shm_cls:
            attach_shared_memory("psm_segment")
        shm_cls.assert_called_once_with(name="psm_segment")
