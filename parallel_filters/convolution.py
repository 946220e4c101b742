"""
Per-pixel convolution with border clamping.

All paths accumulate ``source * weight`` in float64 walking the kernel in
row-major order, divide by the kernel divisor once, clamp into [0, 255]
and truncate toward zero. Because every pixel sees the same sequence of
floating point operations, the scalar and vectorised paths produce
identical bytes whatever the row range being computed.
"""
import numpy as np

from .errors import DimensionMismatch
from .image import Image


def _to_byte(total):
    # truncation, not rounding
    return int(max(0.0, min(255.0, total)))


def compute_channel(source, x, y, channel, kernel) -> int:
    """Filtered value of one channel of pixel (x, y).

    Neighbours outside the image are clamped to the nearest edge pixel on
    each axis independently. Only reads *source*.
    """
    source.coordinate(x, y, channel)
    half = kernel.half
    weights = kernel.weights
    max_x = source.width - 1
    max_y = source.height - 1

    total = 0.0
    for ky in range(-half, half + 1):
        img_y = min(max(y + ky, 0), max_y)
        for kx in range(-half, half + 1):
            img_x = min(max(x + kx, 0), max_x)
            total += source.pixel(img_x, img_y, channel) * float(weights[ky + half, kx + half])

    if kernel.divisor != 1.0:
        total /= kernel.divisor
    return _to_byte(total)


def compute_rows(source, kernel, out, start, end, col_start=0, col_end=None):
    """Filter rows [start, end) and columns [col_start, col_end) of *source* into *out*.

    *source* and *out* are (H, W, C) uint8 arrays of the same shape. Only the
    addressed block of *out* is written.
    """
    height, width = source.shape[0], source.shape[1]
    if col_end is None:
        col_end = width
    half = kernel.half
    weights = kernel.weights

    rows = np.arange(start, end)
    cols = np.arange(col_start, col_end)
    acc = np.zeros((end - start, col_end - col_start, source.shape[2]), dtype=np.float64)

    for ky in range(-half, half + 1):
        # rows of the neighbourhood, clamped at the top and bottom edges
        band = source[np.clip(rows + ky, 0, height - 1)].astype(np.float64)
        for kx in range(-half, half + 1):
            weight = weights[ky + half, kx + half]
            if weight == 0.0:
                continue
            acc += band[:, np.clip(cols + kx, 0, width - 1)] * weight

    if kernel.divisor != 1.0:
        acc /= kernel.divisor
    out[start:end, col_start:col_end] = np.clip(acc, 0, 255).astype(np.uint8)


def compute_image(source, kernel) -> Image:
    """Single-threaded reference: apply compute_channel to every (x, y, channel)."""
    output = Image.blank_like(source)
    if output.shape != source.shape:
        raise DimensionMismatch(f"output {output.shape} does not match source {source.shape}")
    out = output.pixels
    for y in range(source.height):
        for x in range(source.width):
            for c in range(source.channels):
                out[y, x, c] = compute_channel(source, x, y, c, kernel)
    return output
