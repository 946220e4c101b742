"""
Image accessor over a row-major, channel-interleaved uint8 buffer.
"""
from collections import namedtuple

import numpy as np
from PIL import Image as PILImage

from .errors import AllocationFailure, DimensionMismatch, InvalidPixelData, PixelOutOfBounds

PixelCoordinate = namedtuple("PixelCoordinate", ["x", "y", "channel"])

# Pillow modes whose bands map one-to-one onto interleaved channels
_NATIVE_MODES = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


class Image:
    """Raster of ``height`` rows, ``width`` columns and ``channels`` bytes per pixel.

    ``pixels`` is a C-contiguous uint8 array of shape (H, W, C); its flat
    memory is exactly the W*H*C interleaved buffer used by encoders.
    """

    __slots__ = ("pixels",)

    def __init__(self, pixels):
        arr = np.asarray(pixels)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3:
            raise DimensionMismatch(f"expected a (H, W, C) array, got {arr.ndim} dimensions")
        if min(arr.shape) < 1:
            raise DimensionMismatch(f"image dimensions must be positive, got {arr.shape}")
        if arr.dtype != np.uint8:
            if not np.issubdtype(arr.dtype, np.integer):
                raise InvalidPixelData(f"pixel values must be integers, got dtype {arr.dtype}")
            if arr.min() < 0 or arr.max() > 255:
                raise InvalidPixelData(
                    f"pixel values must lie in [0, 255], got [{arr.min()}, {arr.max()}]"
                )
            arr = arr.astype(np.uint8)
        self.pixels = np.ascontiguousarray(arr)

    @classmethod
    def from_bytes(cls, data, width, height, channels):
        expected = width * height * channels
        if len(data) != expected:
            raise DimensionMismatch(
                f"buffer holds {len(data)} bytes, expected {width}x{height}x{channels} = {expected}"
            )
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, channels)
        return cls(arr.copy())

    @classmethod
    def blank_like(cls, image):
        """Allocate a zeroed image with the same (W, H, C) as *image*."""
        try:
            pixels = np.zeros(image.shape, dtype=np.uint8)
        except MemoryError as exc:
            raise AllocationFailure(
                f"cannot allocate {image.width}x{image.height}x{image.channels} output buffer"
            ) from exc
        return cls(pixels)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def shape(self):
        return self.pixels.shape

    def coordinate(self, x, y, channel) -> PixelCoordinate:
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= channel < self.channels):
            raise PixelOutOfBounds(
                f"({x}, {y}, {channel}) outside {self.width}x{self.height}x{self.channels} image"
            )
        return PixelCoordinate(x, y, channel)

    def pixel(self, x, y, channel) -> int:
        coord = self.coordinate(x, y, channel)
        return int(self.pixels[coord.y, coord.x, coord.channel])

    def read_only(self):
        """Return an Image sharing this buffer through a non-writeable view."""
        view = self.pixels.view()
        view.flags.writeable = False
        image = Image.__new__(Image)
        image.pixels = view
        return image

    def to_bytes(self) -> bytes:
        return self.pixels.tobytes()

    def __eq__(self, other):
        if not isinstance(other, Image):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    def __repr__(self):
        return f"Image({self.width}x{self.height}x{self.channels})"


def load_image(path) -> Image:
    """Decode *path* with Pillow, keeping the file's own channel count when possible."""
    with PILImage.open(path) as img:
        if img.mode not in _NATIVE_MODES:
            has_alpha = "A" in img.getbands() or "transparency" in img.info
            img = img.convert("RGBA" if has_alpha else "RGB")
        return Image(np.array(img))


def save_image(image, path):
    arr = image.pixels
    if image.channels == 1:
        arr = arr[:, :, 0]
    PILImage.fromarray(arr).save(path)
