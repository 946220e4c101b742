"""
Kernel presets and the read-only registry that resolves filter names.
"""
import math
from collections.abc import Mapping
from types import MappingProxyType

import numpy as np

from .errors import InvalidKernelSize, UnknownKernelName

# Kernel presets
KERNEL_IDENTITY = np.array([[0,0,0],[0,1,0],[0,0,0]], dtype=float)
KERNEL_BLUR = np.array([[1,1,1],[1,1,1],[1,1,1]], dtype=float)
KERNEL_SHARPEN = np.array([[0,-1,0],[-1,5,-1],[0,-1,0]], dtype=float)
KERNEL_EDGE = np.array([[-1,-1,-1],[-1,8,-1],[-1,-1,-1]], dtype=float)
KERNEL_EMBOSS = np.array([[-2,-1,0],[-1,1,1],[0,1,2]], dtype=float)
KERNEL_GAUSSIAN = np.array([[1,2,1],[2,4,2],[1,2,1]], dtype=float)
KERNEL_GAUSSIAN_5x5 = np.array([
    [1,  4,  6,  4, 1],
    [4, 16, 24, 16, 4],
    [6, 24, 36, 24, 6],
    [4, 16, 24, 16, 4],
    [1,  4,  6,  4, 1]
], dtype=float)

KERNEL_GAUSSIAN_7x7 = np.array([
    [1,  6,  15,  20,  15,  6, 1],
    [6,  36,  90, 120,  90, 36, 6],
    [15, 90, 225, 300, 225, 90, 15],
    [20,120, 300, 400, 300,120, 20],
    [15, 90, 225, 300, 225, 90, 15],
    [6,  36,  90, 120,  90, 36, 6],
    [1,  6,  15,  20,  15,  6, 1]
], dtype=float)


class Kernel:
    """Square, odd-sized convolution kernel.

    The effective coefficients are ``weights / divisor``. Keeping the divisor
    apart lets integer-weighted kernels such as blur (ones / 9) be summed
    exactly and divided once at the end.

    Args:
        weights: K*K values, either flat in row-major order or nested K x K.
        divisor: Positive or negative non-zero scale applied after summing.
        name: Optional label used in log messages.
    """

    __slots__ = ("_weights", "_divisor", "name")

    def __init__(self, weights, divisor=1.0, name=None):
        arr = np.array(weights, dtype=np.float64)
        if arr.ndim == 1:
            side = math.isqrt(arr.size)
            if side * side != arr.size:
                raise InvalidKernelSize(f"{arr.size} coefficients do not form a square kernel")
            arr = arr.reshape(side, side)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
            raise InvalidKernelSize(f"kernel must be square, got shape {arr.shape}")
        size = arr.shape[0]
        if size < 1 or size % 2 == 0:
            raise InvalidKernelSize(f"kernel size must be a positive odd number, got {size}")
        divisor = float(divisor)
        if divisor == 0.0 or not math.isfinite(divisor):
            raise InvalidKernelSize(f"kernel divisor must be finite and non-zero, got {divisor}")

        arr.flags.writeable = False
        self._weights = arr
        self._divisor = divisor
        self.name = name

    @classmethod
    def from_array(cls, kernel, normalize=False, name=None):
        """Build a kernel from a weight array, optionally normalising it to sum to one."""
        divisor = 1.0
        if normalize:
            s = float(np.sum(kernel))
            if s != 0:
                divisor = s
        return cls(kernel, divisor=divisor, name=name)

    @property
    def size(self) -> int:
        return self._weights.shape[0]

    @property
    def half(self) -> int:
        return (self.size - 1) // 2

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def divisor(self) -> float:
        return self._divisor

    def __eq__(self, other):
        if not isinstance(other, Kernel):
            return NotImplemented
        return self._divisor == other._divisor and np.array_equal(self._weights, other._weights)

    def __repr__(self):
        label = f"{self.name!r}, " if self.name else ""
        return f"Kernel({label}size={self.size}, divisor={self._divisor:g})"


class KernelRegistry(Mapping):
    """Immutable name -> Kernel mapping. Safe to share between threads."""

    def __init__(self, kernels):
        self._kernels = MappingProxyType(dict(kernels))

    def __getitem__(self, name):
        return self._kernels[name]

    def __iter__(self):
        return iter(self._kernels)

    def __len__(self):
        return len(self._kernels)

    def lookup(self, name) -> Kernel:
        """Resolve a filter name (case-sensitive) to its kernel."""
        try:
            return self._kernels[name]
        except (KeyError, TypeError):
            raise UnknownKernelName(name, self.names()) from None

    def names(self):
        return sorted(self._kernels)


def _build_default_registry():
    return KernelRegistry({
        "identity": Kernel(KERNEL_IDENTITY, name="identity"),
        "edge": Kernel(KERNEL_EDGE, name="edge"),
        "sharpen": Kernel(KERNEL_SHARPEN, name="sharpen"),
        "blur": Kernel(KERNEL_BLUR, divisor=9, name="blur"),
        "gaussian": Kernel(KERNEL_GAUSSIAN, divisor=16, name="gaussian"),
        "emboss": Kernel(KERNEL_EMBOSS, name="emboss"),
    })


_DEFAULT_REGISTRY = _build_default_registry()


def default_registry() -> KernelRegistry:
    """Return the registry built at import time."""
    return _DEFAULT_REGISTRY
