"""Parallel image convolution filters."""
from .convolution import compute_channel, compute_image, compute_rows
from .engine import apply_convolution
from .errors import (
    AllocationFailure,
    ConvolutionError,
    DimensionMismatch,
    InvalidKernelSize,
    InvalidPixelData,
    PartitionError,
    PixelOutOfBounds,
    UnknownKernelName,
)
from .executor import ParallelExecutor
from .image import Image, PixelCoordinate, load_image, save_image
from .kernels import Kernel, KernelRegistry, default_registry
from .partitioning import DynamicGridScheduler, Partitioner, StaticRowPartitioner, WorkUnit

__version__ = "0.1.0"

__all__ = [
    "AllocationFailure",
    "ConvolutionError",
    "DimensionMismatch",
    "DynamicGridScheduler",
    "Image",
    "InvalidKernelSize",
    "InvalidPixelData",
    "Kernel",
    "KernelRegistry",
    "ParallelExecutor",
    "PartitionError",
    "Partitioner",
    "PixelCoordinate",
    "PixelOutOfBounds",
    "StaticRowPartitioner",
    "UnknownKernelName",
    "WorkUnit",
    "apply_convolution",
    "compute_channel",
    "compute_image",
    "compute_rows",
    "default_registry",
    "load_image",
    "save_image",
]
