"""Strategies that split the image rows into disjoint work units."""
import logging
from abc import ABC, abstractmethod
from collections import namedtuple

from .config import DEFAULT_CHUNK_ROWS
from .errors import PartitionError

logger = logging.getLogger(__name__)


class WorkUnit(namedtuple("WorkUnit", ["start", "end", "col_start", "col_end"])):
    """Rows [start, end) and columns [col_start, col_end); col_end None means full width."""

    __slots__ = ()

    def __new__(cls, start, end, col_start=0, col_end=None):
        return super().__new__(cls, start, end, col_start, col_end)

    @property
    def rows(self) -> int:
        return self.end - self.start


class Partitioner(ABC):
    """Divides [0, height) into work units ordered by start row."""

    # joblib dispatch knobs: how many units travel per batch and how many
    # are queued ahead of the workers
    batch_size = 1
    pre_dispatch = "all"

    @abstractmethod
    def partition(self, height, worker_count, width=None):
        """Return the list of WorkUnit covering the image exactly once."""

    @staticmethod
    def _check_args(height, worker_count):
        if height < 1:
            raise PartitionError(f"height must be positive, got {height}")
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")


class StaticRowPartitioner(Partitioner):
    """One contiguous band per worker; the last band absorbs the remainder."""

    def partition(self, height, worker_count, width=None):
        self._check_args(height, worker_count)
        bands = min(worker_count, height)
        rows_per_band = height // bands
        units = []
        for i in range(bands):
            start = i * rows_per_band
            end = height if i == bands - 1 else (i + 1) * rows_per_band
            units.append(WorkUnit(start, end))
        logger.debug("static partition: %d bands of %d rows over %d rows", bands, rows_per_band, height)
        return units


class DynamicGridScheduler(Partitioner):
    """Small chunks drained from a shared queue by whichever worker is idle.

    Args:
        chunk_rows: Rows per chunk.
        chunk_columns: Columns per chunk, or None to keep whole rows. Needs
            the image width at partition time.
    """

    pre_dispatch = "2*n_jobs"

    def __init__(self, chunk_rows=DEFAULT_CHUNK_ROWS, chunk_columns=None):
        if chunk_rows < 1:
            raise ValueError(f"chunk_rows must be at least 1, got {chunk_rows}")
        if chunk_columns is not None and chunk_columns < 1:
            raise ValueError(f"chunk_columns must be at least 1, got {chunk_columns}")
        self.chunk_rows = chunk_rows
        self.chunk_columns = chunk_columns

    def partition(self, height, worker_count, width=None):
        self._check_args(height, worker_count)
        if self.chunk_columns is not None and width is None:
            raise PartitionError("column chunking needs the image width")

        units = []
        for i in range(0, height, self.chunk_rows):
            end_i = min(i + self.chunk_rows, height)
            if self.chunk_columns is None:
                units.append(WorkUnit(i, end_i))
                continue
            for j in range(0, width, self.chunk_columns):
                end_j = min(j + self.chunk_columns, width)
                units.append(WorkUnit(i, end_i, j, end_j))
        logger.debug("dynamic partition: %d chunks for %d workers", len(units), worker_count)
        return units


def make_partitioner(strategy, chunk_rows=DEFAULT_CHUNK_ROWS, chunk_columns=None) -> Partitioner:
    if strategy == "static":
        return StaticRowPartitioner()
    if strategy == "dynamic":
        return DynamicGridScheduler(chunk_rows=chunk_rows, chunk_columns=chunk_columns)
    raise ValueError(f"unknown strategy {strategy!r}, expected 'static' or 'dynamic'")


def check_coverage(units, height, width):
    """Raise PartitionError unless *units* tile the (row, column) space exactly once."""
    covered = {}
    for unit in units:
        col_end = width if unit.col_end is None else unit.col_end
        if not (0 <= unit.start < unit.end <= height and 0 <= unit.col_start < col_end <= width):
            raise PartitionError(f"work unit {unit} is empty or outside {width}x{height}")
        for row in range(unit.start, unit.end):
            covered.setdefault(row, []).append((unit.col_start, col_end))

    if len(covered) != height:
        missing = sorted(set(range(height)) - set(covered))
        raise PartitionError(f"rows {missing[:5]} are not assigned to any work unit")
    for row, spans in covered.items():
        position = 0
        for col_start, col_end in sorted(spans):
            if col_start != position:
                raise PartitionError(f"row {row} has a gap or overlap at column {col_start}")
            position = col_end
        if position != width:
            raise PartitionError(f"row {row} is covered up to column {position} of {width}")
