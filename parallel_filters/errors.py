"""Exceptions raised by the convolution engine."""


class ConvolutionError(Exception):
    """Base class for every error raised by parallel_filters."""


class UnknownKernelName(ConvolutionError, LookupError):
    def __init__(self, name, available=()):
        self.name = name
        self.available = tuple(available)
        message = f"Unknown filter type: {name}"
        if self.available:
            message += f" (expected one of: {', '.join(self.available)})"
        super().__init__(message)


class InvalidKernelSize(ConvolutionError, ValueError):
    """Kernel is empty, not square, or has an even side length."""


class DimensionMismatch(ConvolutionError, ValueError):
    """Buffer shape does not match the image it belongs to."""


class AllocationFailure(ConvolutionError, MemoryError):
    """The output buffer could not be allocated."""


class PartitionError(ConvolutionError, ValueError):
    """Work units do not cover the image rows exactly once."""


class PixelOutOfBounds(ConvolutionError, IndexError):
    pass


class InvalidPixelData(ConvolutionError, ValueError):
    """Pixel values are not bytes in [0, 255]."""
