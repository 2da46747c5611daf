"""Subpixel ranges and clamped write-back.

Every value that flows back into a pixel buffer after floating-point work
(convolution sums, scalar arithmetic, blending) goes through
:func:`write_back`, so overflow is never an error: results saturate at the
subpixel type's bounds.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, DTypeLike


def check_subpixel(dtype: DTypeLike) -> np.dtype:
    """Return *dtype* as a ``np.dtype`` if it is a bounded, ordered numeric type.

    Raises:
        TypeError: For complex, object, string or datetime dtypes.
    """
    dtype = np.dtype(dtype)
    if dtype.kind not in "biuf":
        raise TypeError(
            f"Subpixel type must be bool, integer or float, got {dtype}"
        )
    return dtype


def subpixel_range(dtype: DTypeLike) -> tuple[float, float]:
    """Return the ``(min, max)`` representable by a subpixel type.

    Bool subpixels are treated as the integers ``0`` and ``1``.
    """
    dtype = check_subpixel(dtype)
    if dtype.kind == "b":
        return 0.0, 1.0
    if dtype.kind == "f":
        info = np.finfo(dtype)
        return float(info.min), float(info.max)

    info = np.iinfo(dtype)
    lo, hi = float(info.min), float(info.max)
    # 64-bit maxima round up when converted to float64.
    if hi > info.max:
        hi = float(np.nextafter(hi, 0.0))
    return lo, hi


def write_back(values: ArrayLike, dtype: DTypeLike) -> np.ndarray:
    """Clamp *values* into the range of *dtype* and cast.

    Integer and bool targets are rounded to the nearest integer first
    (ties to even); float targets are only clamped.

    Args:
        values: Any array-like of numbers, typically a float64 accumulator.
        dtype: Target subpixel type.

    Returns:
        A new array of *dtype* with the same shape as *values*.
    """
    dtype = check_subpixel(dtype)
    acc = np.asarray(values, dtype=np.float64)
    if dtype.kind != "f":
        acc = np.rint(acc)
    lo, hi = subpixel_range(dtype)
    return np.clip(acc, lo, hi).astype(dtype)


def saturating_add(a: ArrayLike, b: ArrayLike, dtype: DTypeLike) -> np.ndarray:
    """Element-wise ``a + b`` clamped to the range of *dtype*."""
    return write_back(np.add(a, b, dtype=np.float64), dtype)


def saturating_sub(a: ArrayLike, b: ArrayLike, dtype: DTypeLike) -> np.ndarray:
    """Element-wise ``a - b`` clamped to the range of *dtype*."""
    return write_back(np.subtract(a, b, dtype=np.float64), dtype)


def saturating_mul(a: ArrayLike, b: ArrayLike, dtype: DTypeLike) -> np.ndarray:
    """Element-wise ``a * b`` clamped to the range of *dtype*."""
    return write_back(np.multiply(a, b, dtype=np.float64), dtype)


def coerce(values: ArrayLike, dtype: DTypeLike) -> np.ndarray:
    """Copy *values* into a new array of *dtype*.

    Values already of *dtype* are copied verbatim; anything else goes
    through :func:`write_back`, so out-of-range input saturates instead of
    wrapping.
    """
    dtype = check_subpixel(dtype)
    arr = np.asarray(values)
    if arr.dtype == dtype:
        return arr.copy()
    return write_back(arr, dtype)
