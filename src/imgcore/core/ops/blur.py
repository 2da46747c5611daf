"""Smoothing filters: Gaussian kernel, box (mean) and median.

Typical usage::

    from imgcore.core.ops.blur import BoxFilter, GaussianKernel, MedianFilter

    smooth = GaussianKernel(5, 1.2).filter(img)
    despeckled = MedianFilter(3, 3).filter(img)
"""

from __future__ import annotations

import logging

import numpy as np

from imgcore.core.image import Image
from imgcore.core.ops._base import (
    Kernel,
    accumulate,
    check_execution,
    check_odd,
    extend_padded,
    map_row_blocks,
)
from imgcore.core.saturate import write_back
from imgcore.errors import ConstructionError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Gaussian
# ---------------------------------------------------------------------------


class GaussianKernel(Kernel):
    """Normalised square Gaussian kernel.

    Cell ``(x, y)`` starts as ``exp(-((x-c)² + (y-c)²) / (2σ²))`` with
    ``c = size // 2``; the whole matrix is then divided by its sum.

    Args:
        size: Side length (odd).
        sigma: Standard deviation in pixels (positive).

    Raises:
        ConstructionError: If *size* is even or *sigma* is not positive.
    """

    def __init__(
        self,
        size: int,
        sigma: float,
        *,
        workers: int = 1,
        rows_per_block: int = 64,
    ) -> None:
        check_odd("Gaussian kernel size", size)
        if not sigma > 0.0:
            raise ConstructionError(f"sigma must be positive, got {sigma}")

        offsets = np.arange(size, dtype=np.float64) - size // 2
        squared = offsets[:, np.newaxis] ** 2 + offsets[np.newaxis, :] ** 2
        weights = np.exp(-squared / (2.0 * sigma * sigma))

        super().__init__(
            weights / weights.sum(),
            workers=workers,
            rows_per_block=rows_per_block,
        )
        self.sigma = sigma


# ---------------------------------------------------------------------------
# Box
# ---------------------------------------------------------------------------


class BoxFilter:
    """Unweighted mean over a ``width × height`` window.

    Off-image cells are sampled with ``EXTEND``, so every window has
    exactly ``width * height`` contributions.

    Raises:
        ConstructionError: If either dimension is even.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        workers: int = 1,
        rows_per_block: int = 64,
    ) -> None:
        self.width = check_odd("Box filter width", width)
        self.height = check_odd("Box filter height", height)
        check_execution(workers, rows_per_block)
        self.workers = workers
        self.rows_per_block = rows_per_block

    def filter(self, image: Image) -> Image:
        dtype = image.kind.subpixel
        count = float(self.width * self.height)
        ones = np.ones((self.height, self.width), dtype=np.float64)
        padded = extend_padded(image, self.width // 2, self.height // 2)
        logger.debug(
            "Box filter %dx%d on %dx%d image",
            self.width,
            self.height,
            image.width,
            image.height,
        )

        def compute(start: int, end: int) -> np.ndarray:
            total = accumulate(padded, ones, start, end, image.width)
            return write_back(total / count, dtype)

        out = np.empty((image.height, image.width, image.channels()), dtype=dtype)
        map_row_blocks(compute, out, self.workers, self.rows_per_block)
        return Image.from_array(image.kind, out, copy=False)

    def __repr__(self) -> str:
        return f"BoxFilter({self.width}x{self.height})"


# ---------------------------------------------------------------------------
# Median
# ---------------------------------------------------------------------------


class MedianFilter:
    """Per-channel median over a ``width × height`` window.

    Only window cells that lie on the image contribute, so windows shrink
    near the borders. Each channel's values are sorted independently and
    the element at index ``count // 2`` is taken; on colour images the
    result need not be any of the window's original pixels.

    Raises:
        ConstructionError: If either dimension is even.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        workers: int = 1,
        rows_per_block: int = 64,
    ) -> None:
        self.width = check_odd("Median filter width", width)
        self.height = check_odd("Median filter height", height)
        check_execution(workers, rows_per_block)
        self.workers = workers
        self.rows_per_block = rows_per_block

    def filter(self, image: Image) -> Image:
        dtype = image.kind.subpixel
        pad_x, pad_y = self.width // 2, self.height // 2
        channels = image.channels()
        logger.debug(
            "Median filter %dx%d on %dx%d image",
            self.width,
            self.height,
            image.width,
            image.height,
        )

        # NaN marks off-image cells; np.sort moves NaN to the end.
        padded = np.full(
            (image.height + 2 * pad_y, image.width + 2 * pad_x, channels),
            np.nan,
        )
        padded[pad_y : pad_y + image.height, pad_x : pad_x + image.width] = (
            image.pixels()
        )

        def compute(start: int, end: int) -> np.ndarray:
            windows = np.stack(
                [
                    padded[start + j : end + j, i : i + image.width]
                    for j in range(self.height)
                    for i in range(self.width)
                ],
                axis=-1,
            )
            windows.sort(axis=-1)
            count = np.count_nonzero(~np.isnan(windows), axis=-1)
            median = np.take_along_axis(
                windows, (count // 2)[..., np.newaxis], axis=-1
            )
            return write_back(median[..., 0], dtype)

        out = np.empty((image.height, image.width, channels), dtype=dtype)
        map_row_blocks(compute, out, self.workers, self.rows_per_block)
        return Image.from_array(image.kind, out, copy=False)

    def __repr__(self) -> str:
        return f"MedianFilter({self.width}x{self.height})"
