"""Base types and shared machinery for filters.

This module defines the ``Filter`` protocol (what a filter *does*), the
``Kernel`` weight matrix with its convolution, and the row-block executor
reused by every filter implementation.

Every output row depends only on the input image, never on other output
rows, so filters split their output into disjoint row blocks and can
compute the blocks on a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Protocol, Sequence, runtime_checkable

import numpy as np

from imgcore.core.eye import EXTEND, sample_grid
from imgcore.core.image import Image
from imgcore.core.saturate import write_back
from imgcore.errors import ConstructionError, OutOfRangeError

logger = logging.getLogger(__name__)

# Computes output rows [start, end) and returns them as an array.
BlockFunction = Callable[[int, int], np.ndarray]


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Filter(Protocol):
    """Interface that every filter and kernel implements."""

    def filter(self, image: Image) -> Image:
        """Apply the filter.

        Args:
            image: Source image; never modified.

        Returns:
            A new image with the same kind and dimensions.
        """
        ...


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def check_odd(name: str, value: int) -> int:
    """Return *value* if it is a positive odd integer.

    Raises:
        ConstructionError: Otherwise.
    """
    if value < 1 or value % 2 == 0:
        raise ConstructionError(f"{name} must be a positive odd number, got {value}")
    return value


def check_execution(workers: int, rows_per_block: int) -> None:
    if workers < 1:
        raise ConstructionError(f"workers must be at least 1, got {workers}")
    if rows_per_block < 1:
        raise ConstructionError(
            f"rows_per_block must be at least 1, got {rows_per_block}"
        )


# ---------------------------------------------------------------------------
# Row-block execution
# ---------------------------------------------------------------------------


def map_row_blocks(
    compute: BlockFunction,
    out: np.ndarray,
    workers: int = 1,
    rows_per_block: int = 64,
) -> np.ndarray:
    """Fill *out* block by block with ``compute(start, end)``.

    Args:
        compute: Returns output rows ``[start, end)``; must not touch *out*.
        out: Preallocated output whose first axis is the image height.
        workers: Thread count. ``1`` runs every block on the caller's thread.
        rows_per_block: Rows per work unit.

    Returns:
        *out*, fully written.
    """
    height = out.shape[0]
    blocks = [
        (start, min(start + rows_per_block, height))
        for start in range(0, height, rows_per_block)
    ]

    if workers == 1 or len(blocks) == 1:
        for start, end in blocks:
            out[start:end] = compute(start, end)
        return out

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(compute, start, end): (start, end)
            for start, end in blocks
        }
        for future in as_completed(futures):
            start, end = futures[future]
            out[start:end] = future.result()
    return out


def accumulate(
    padded: np.ndarray,
    weights: np.ndarray,
    start: int,
    end: int,
    width: int,
) -> np.ndarray:
    """Weighted window sum for output rows ``[start, end)``.

    *padded* holds the source image surrounded by ``height // 2`` rows and
    ``width // 2`` columns of boundary samples, so output ``(x, y)`` reads
    ``padded[y + j, x + i]`` for kernel cell ``(i, j)``.
    """
    kernel_h, kernel_w = weights.shape
    acc = np.zeros((end - start, width, padded.shape[2]), dtype=np.float64)
    for j in range(kernel_h):
        for i in range(kernel_w):
            acc += weights[j, i] * padded[start + j : end + j, i : i + width]
    return acc


def extend_padded(image: Image, pad_x: int, pad_y: int) -> np.ndarray:
    """Float64 copy of *image* with ``EXTEND`` samples around it."""
    xs = np.arange(-pad_x, image.width + pad_x)
    ys = np.arange(-pad_y, image.height + pad_y)
    return sample_grid(image, xs, ys, EXTEND).astype(np.float64)


def convolve(
    image: Image,
    weights: np.ndarray,
    workers: int = 1,
    rows_per_block: int = 64,
) -> Image:
    """Convolve *image* with an odd-sized weight matrix.

    Off-image neighbours are sampled with ``EXTEND``; each channel is
    accumulated in float64 and written back clamped (and rounded for
    integer subpixels).

    Args:
        image: Source image.
        weights: ``(height, width)`` weights, both dimensions odd.
        workers: Thread count for the row blocks.
        rows_per_block: Rows per work unit.

    Returns:
        A new image of the same kind and size.
    """
    kernel_h, kernel_w = weights.shape
    dtype = image.kind.subpixel
    logger.debug(
        "Convolving %dx%d %s image with %dx%d kernel on %d worker(s)",
        image.width,
        image.height,
        image.kind.__name__,
        kernel_w,
        kernel_h,
        workers,
    )

    padded = extend_padded(image, kernel_w // 2, kernel_h // 2)

    def compute(start: int, end: int) -> np.ndarray:
        acc = accumulate(padded, weights, start, end, image.width)
        return write_back(acc, dtype)

    out = np.empty((image.height, image.width, image.channels()), dtype=dtype)
    map_row_blocks(compute, out, workers, rows_per_block)
    return Image.from_array(image.kind, out, copy=False)


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------


class Kernel:
    """Immutable weight matrix with odd width and height.

    ``kernel[x, y]`` reads column *x* of row *y*; the centre cell is
    ``(width // 2, height // 2)``. Applying the kernel convolves with
    ``EXTEND`` boundaries.

    Args:
        weights: 2D array-like, rows first.
        workers: Thread count used by :meth:`filter`.
        rows_per_block: Rows per work unit used by :meth:`filter`.

    Raises:
        ConstructionError: If the matrix is not 2D or a dimension is even.
    """

    def __init__(
        self,
        weights,
        *,
        workers: int = 1,
        rows_per_block: int = 64,
    ) -> None:
        matrix = np.array(weights, dtype=np.float64)
        if matrix.ndim != 2:
            raise ConstructionError(
                f"Kernel weights must be 2D, got shape {matrix.shape}"
            )
        check_odd("Kernel height", matrix.shape[0])
        check_odd("Kernel width", matrix.shape[1])
        check_execution(workers, rows_per_block)
        matrix.flags.writeable = False

        self._weights = matrix
        self.workers = workers
        self.rows_per_block = rows_per_block

    @property
    def width(self) -> int:
        return self._weights.shape[1]

    @property
    def height(self) -> int:
        return self._weights.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``."""
        return self.width, self.height

    @property
    def weights(self) -> np.ndarray:
        """Read-only ``(height, width)`` weight array."""
        return self._weights

    def __getitem__(self, key: tuple[int, int]) -> float:
        x, y = key
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfRangeError(
                f"Cell ({x}, {y}) outside {self.width}x{self.height} kernel"
            )
        return float(self._weights[y, x])

    def sum(self) -> float:
        return float(self._weights.sum())

    def normalized(self) -> GeneralKernel:
        """Copy of this kernel scaled so its weights sum to 1.

        Raises:
            ConstructionError: If the weights sum to zero.
        """
        total = self.sum()
        if total == 0.0:
            raise ConstructionError("Cannot normalize a kernel whose weights sum to 0")
        return GeneralKernel(
            self.width,
            self.height,
            (self._weights / total).ravel(),
            workers=self.workers,
            rows_per_block=self.rows_per_block,
        )

    def filter(self, image: Image) -> Image:
        """Convolve *image* with this kernel."""
        return convolve(image, self._weights, self.workers, self.rows_per_block)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return bool(np.array_equal(self._weights, other._weights))

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


class GeneralKernel(Kernel):
    """Kernel built from a flat, row-major list of weights.

    Args:
        width: Number of columns (odd).
        height: Number of rows (odd).
        weights: Exactly ``width * height`` values, row by row.

    Raises:
        ConstructionError: On a weight-count mismatch or even dimension.
    """

    def __init__(
        self,
        width: int,
        height: int,
        weights: Sequence[float] | np.ndarray,
        *,
        workers: int = 1,
        rows_per_block: int = 64,
    ) -> None:
        flat = np.asarray(weights, dtype=np.float64).ravel()
        if flat.size != width * height:
            raise ConstructionError(
                f"A {width}x{height} kernel needs {width * height} weights, "
                f"got {flat.size}"
            )
        check_odd("Kernel width", width)
        check_odd("Kernel height", height)
        super().__init__(
            flat.reshape(height, width),
            workers=workers,
            rows_per_block=rows_per_block,
        )
