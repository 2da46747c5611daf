"""Tests for imgcore.core.saturate."""

import numpy as np
import pytest

from imgcore.core.saturate import (
    coerce,
    saturating_add,
    saturating_mul,
    saturating_sub,
    subpixel_range,
    write_back,
)


class TestSubpixelRange:
    def test_uint8(self) -> None:
        assert subpixel_range(np.uint8) == (0.0, 255.0)

    def test_int8(self) -> None:
        assert subpixel_range(np.int8) == (-128.0, 127.0)

    def test_bool(self) -> None:
        assert subpixel_range(np.bool_) == (0.0, 1.0)

    def test_float32(self) -> None:
        lo, hi = subpixel_range(np.float32)
        assert hi == float(np.finfo(np.float32).max)
        assert lo == -hi

    def test_rejects_complex(self) -> None:
        with pytest.raises(TypeError):
            subpixel_range(np.complex64)


class TestWriteBack:
    """Clamp-and-round write-back of float accumulators."""

    def test_clamps_and_rounds_integers(self) -> None:
        out = write_back([-3.2, 12.6, 300.0], np.uint8)
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out, [0, 13, 255])

    def test_float_target_is_not_rounded(self) -> None:
        out = write_back([1.25, -7.5], np.float32)
        np.testing.assert_array_equal(out, np.array([1.25, -7.5], dtype=np.float32))

    def test_int64_upper_bound_does_not_wrap(self) -> None:
        out = write_back([1e30], np.int64)
        assert out[0] > 0

    def test_bool_target(self) -> None:
        np.testing.assert_array_equal(write_back([0.2, 0.7, 5.0], np.bool_), [False, True, True])

    def test_preserves_shape(self) -> None:
        out = write_back(np.zeros((2, 3, 4)), np.uint16)
        assert out.shape == (2, 3, 4)


class TestSaturatingOps:
    def test_add_saturates_at_max(self) -> None:
        a = np.array([200, 10], dtype=np.uint8)
        b = np.array([100, 10], dtype=np.uint8)
        np.testing.assert_array_equal(saturating_add(a, b, np.uint8), [255, 20])

    def test_sub_saturates_at_min(self) -> None:
        a = np.array([5, 50], dtype=np.uint8)
        b = np.array([10, 10], dtype=np.uint8)
        np.testing.assert_array_equal(saturating_sub(a, b, np.uint8), [0, 40])

    def test_mul_saturates_signed(self) -> None:
        a = np.array([100, -100], dtype=np.int8)
        np.testing.assert_array_equal(saturating_mul(a, 2, np.int8), [127, -128])

    def test_coerce_same_dtype_copies(self) -> None:
        src = np.array([1, 2], dtype=np.uint8)
        out = coerce(src, np.uint8)
        out[0] = 9
        assert src[0] == 1

    def test_coerce_clamps_foreign_dtype(self) -> None:
        np.testing.assert_array_equal(coerce([300, -1], np.uint8), [255, 0])
