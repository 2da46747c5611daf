"""Shared fixtures for the imgcore test suite."""

import numpy as np
import pytest

from imgcore.core.image import Image
from imgcore.core.pixel import BGR8, BGRA8, Bit, Gray8, Grayf


@pytest.fixture
def gray3() -> Image:
    """The 3x3 gray image [1,2,3; 4,5,6; 7,8,9]."""
    return Image.from_rows(Gray8, [[1, 2, 3], [4, 5, 6], [7, 8, 9]])


@pytest.fixture
def bgr_image() -> Image:
    """A 12x9 BGR image with a different gradient on each channel."""
    arr = np.zeros((9, 12, 3), dtype=np.uint8)
    arr[:, :, 0] = np.linspace(0, 255, 12, dtype=np.uint8)  # blue ramps across
    arr[:, :, 1] = np.linspace(0, 255, 9, dtype=np.uint8)[:, np.newaxis]
    arr[:, :, 2] = 64
    arr[4, 6] = (255, 0, 255)  # one outlier
    return Image.from_array(BGR8, arr)


@pytest.fixture
def bgra_image(bgr_image: Image) -> Image:
    """The BGR fixture with a half-transparent alpha channel."""
    arr = np.concatenate(
        [bgr_image.to_array(), np.full((9, 12, 1), 128, dtype=np.uint8)],
        axis=2,
    )
    return Image.from_array(BGRA8, arr)


@pytest.fixture
def float_gray() -> Image:
    """A 6x4 float gray image with values around zero."""
    arr = np.arange(24, dtype=np.float32).reshape(4, 6) - 12.0
    return Image.from_array(Grayf, arr)


@pytest.fixture
def checkerboard() -> Image:
    """A 5x4 single-bit checkerboard."""
    arr = (np.indices((4, 5)).sum(axis=0) % 2).astype(bool)
    return Image.from_array(Bit, arr)
