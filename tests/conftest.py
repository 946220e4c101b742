import numpy as np
import pytest

from parallel_filters import Image


@pytest.fixture
def small_image():
    """3x3 single channel image with values 10..90."""
    return Image(np.array([[10, 20, 30], [40, 50, 60], [70, 80, 90]], dtype=np.uint8))


@pytest.fixture
def random_image():
    rng = np.random.default_rng(1234)
    return Image(rng.integers(0, 256, size=(23, 17, 3), dtype=np.uint8))


@pytest.fixture
def tiny_random_image():
    rng = np.random.default_rng(99)
    return Image(rng.integers(0, 256, size=(7, 9, 2), dtype=np.uint8))
