"""Tests for imgcore.core.image."""

import copy
import pickle

import numpy as np
import pytest

from imgcore.core.image import Image
from imgcore.core.pixel import BGR8, BGRA8, Bit, Gray8, Grayf, bgr, bgra, bit, gray
from imgcore.errors import ConstructionError, OutOfRangeError


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    """Validate allocation and the from_* constructors."""

    def test_alloc(self) -> None:
        img = Image.new(BGRA8, 100, 200)
        assert img.size == (100, 200)
        assert img.channels() == 4
        assert img.bits_per_pixel() == 32
        assert img.stride == 100
        assert img.raw().size == 100 * 200 * 4
        assert img.pitch() == 100 * 4

    def test_bytes_per_row_uses_subpixel_size(self) -> None:
        img = Image.new(Grayf, 5, 2)
        assert img.bytes_per_row() == 20

    def test_rejects_empty_dimensions(self) -> None:
        with pytest.raises(ConstructionError):
            Image.new(Gray8, 0, 3)

    def test_rejects_unspecialised_kind(self) -> None:
        from imgcore.core.pixel import Gray

        with pytest.raises(TypeError):
            Image.new(Gray, 2, 2)

    def test_from_raw_pixels(self) -> None:
        img = Image.from_raw(Gray8, 2, 2, [gray(1), gray(2), gray(3), gray(4)])
        assert img[1, 0] == gray(2)
        assert img[0, 1] == gray(3)

    def test_from_raw_flat_subpixels(self) -> None:
        img = Image.from_raw(BGR8, 2, 1, [1, 2, 3, 4, 5, 6])
        assert img[1, 0] == bgr(4, 5, 6)

    def test_from_raw_dimension_mismatch(self) -> None:
        with pytest.raises(ConstructionError, match="Expected 6 pixels"):
            Image.from_raw(Gray8, 3, 2, [1, 2, 3, 4, 5])

    def test_from_raw_partial_pixel(self) -> None:
        with pytest.raises(ConstructionError):
            Image.from_raw(BGR8, 1, 1, [1, 2])

    def test_from_raw_wrong_pixel_kind(self) -> None:
        with pytest.raises(ConstructionError):
            Image.from_raw(Gray8, 1, 1, [bgr(1, 2, 3)])

    def test_from_array_two_dimensional(self) -> None:
        img = Image.from_array(Gray8, np.zeros((4, 3), dtype=np.uint8))
        assert img.size == (3, 4)

    def test_from_array_wrong_channels(self) -> None:
        with pytest.raises(ConstructionError):
            Image.from_array(BGR8, np.zeros((2, 2, 4), dtype=np.uint8))

    def test_from_array_copies_by_default(self) -> None:
        arr = np.zeros((2, 2, 3), dtype=np.uint8)
        img = Image.from_array(BGR8, arr)
        arr[0, 0] = 9
        assert img[0, 0] == bgr(0, 0, 0)

    def test_from_rows_ragged(self) -> None:
        with pytest.raises(ConstructionError):
            Image.from_rows(Gray8, [[1, 2], [3]])

    def test_from_rows_pixels(self) -> None:
        img = Image.from_rows(BGR8, [[bgr(1, 2, 3), bgr(4, 5, 6)]])
        assert img.size == (2, 1)
        assert img[1, 0] == bgr(4, 5, 6)


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------


class TestAccess:
    """Direct indexing is bounds-checked, never clamped."""

    def test_index(self, gray3: Image) -> None:
        assert gray3[0, 0] == gray(1)
        assert gray3[2, 1] == gray(6)

    def test_index_x_out_of_range(self, gray3: Image) -> None:
        with pytest.raises(OutOfRangeError):
            gray3[3, 0]

    def test_negative_index_is_out_of_range(self, gray3: Image) -> None:
        with pytest.raises(OutOfRangeError):
            gray3[-1, 0]

    def test_set_index_out_of_range(self, gray3: Image) -> None:
        with pytest.raises(OutOfRangeError):
            gray3[0, 3] = gray(1)

    def test_set_index(self, gray3: Image) -> None:
        gray3[1, 1] = gray(50)
        assert gray3[1, 1] == gray(50)

    def test_set_index_wrong_kind(self, gray3: Image) -> None:
        with pytest.raises(TypeError):
            gray3[1, 1] = bgr(1, 2, 3)

    def test_row(self, gray3: Image) -> None:
        np.testing.assert_array_equal(gray3.row(1)[:, 0], [4, 5, 6])

    def test_row_is_read_only(self, gray3: Image) -> None:
        with pytest.raises(ValueError):
            gray3.row(0)[0, 0] = 9

    def test_row_mut_writes_through(self, gray3: Image) -> None:
        gray3.row_mut(2)[:, 0] = 0
        assert gray3[1, 2] == gray(0)

    @pytest.mark.parametrize("y", [-1, 3, 100])
    def test_row_out_of_range(self, gray3: Image, y: int) -> None:
        with pytest.raises(OutOfRangeError):
            gray3.row(y)
        with pytest.raises(OutOfRangeError):
            gray3.row_mut(y)

    def test_to_array_is_a_copy(self, gray3: Image) -> None:
        arr = gray3.to_array()
        arr[0, 0, 0] = 99
        assert gray3[0, 0] == gray(1)


# ---------------------------------------------------------------------------
# Bulk writes
# ---------------------------------------------------------------------------


class TestFill:
    def test_fill_every_cell(self) -> None:
        img = Image.new(BGR8, 7, 5)
        img.fill(bgr(10, 20, 30))
        assert all(p == bgr(10, 20, 30) for _, _, p in img.iter())

    def test_zero(self) -> None:
        img = Image.new(BGRA8, 3, 3)
        img.zero()
        assert all(p == BGRA8.zero() for _, _, p in img)

    def test_fill_channel(self, bgr_image: Image) -> None:
        bgr_image.fill_channel(1, 7)
        assert all(p[1] == 7 for _, _, p in bgr_image)

    def test_fill_channel_out_of_range(self, bgr_image: Image) -> None:
        with pytest.raises(ConstructionError):
            bgr_image.fill_channel(3, 0)

    def test_set_alpha(self, bgra_image: Image) -> None:
        bgra_image.set_alpha()
        assert all(p[3] == 255 for _, _, p in bgra_image)

    def test_set_alpha_keeps_colour(self, bgra_image: Image) -> None:
        before = bgra_image.to_array()[..., :3]
        bgra_image.set_alpha()
        np.testing.assert_array_equal(bgra_image.to_array()[..., :3], before)

    def test_set_alpha_without_alpha_channel(self, gray3: Image) -> None:
        with pytest.raises(TypeError):
            gray3.set_alpha()


# ---------------------------------------------------------------------------
# Iteration
# ---------------------------------------------------------------------------


class TestIteration:
    """Row-major, complete, restartable iteration."""

    def test_iter_row_major(self, gray3: Image) -> None:
        coords = [(x, y) for x, y, _ in gray3.iter()]
        assert coords == [(x, y) for y in range(3) for x in range(3)]

    def test_iter_values(self, gray3: Image) -> None:
        assert [p[0] for _, _, p in gray3] == list(range(1, 10))

    def test_iter_is_restartable(self, gray3: Image) -> None:
        assert list(gray3.iter()) == list(gray3.iter())

    def test_iter_mut_visible_to_iter(self) -> None:
        img = Image.new(BGRA8, 10, 5)
        visited = 0
        for _, _, ref in img.iter_mut():
            ref.set(bgra(128, 128, 0, 0))
            visited += 1
        assert visited == 50

        values = [p for _, _, p in img.iter()]
        assert len(values) == 50
        assert all(p == bgra(128, 128, 0, 0) for p in values)

    def test_iter_mut_channel_writes(self, gray3: Image) -> None:
        for x, y, ref in gray3.iter_mut():
            ref[0] = x + 10 * y
        assert gray3[2, 1] == gray(12)

    def test_iter_mut_arithmetic(self, gray3: Image) -> None:
        for _, _, ref in gray3.iter_mut():
            ref.set(ref.get() + 250)
        assert gray3[0, 0] == gray(251)
        assert gray3[2, 2] == gray(255)

    def test_pixel_copies_do_not_alias(self, gray3: Image) -> None:
        for _, _, p in gray3.iter():
            p[0] = 0
        assert gray3[0, 0] == gray(1)


# ---------------------------------------------------------------------------
# Copies
# ---------------------------------------------------------------------------


class TestCopy:
    def test_copy_is_deep(self, gray3: Image) -> None:
        clone = gray3.copy()
        clone[0, 0] = gray(99)
        assert gray3[0, 0] == gray(1)
        assert clone != gray3

    def test_copy_module(self, gray3: Image) -> None:
        assert copy.deepcopy(gray3) == gray3
        assert copy.copy(gray3) is not gray3

    def test_pickle_round_trip(self, bgra_image: Image, float_gray: Image) -> None:
        for img in (bgra_image, float_gray):
            restored = pickle.loads(pickle.dumps(img))
            assert restored.kind is img.kind
            assert restored == img

    def test_pickled_image_is_writable(self, checkerboard: Image) -> None:
        restored = pickle.loads(pickle.dumps(checkerboard))
        restored[0, 0] = bit(True)
        assert restored[0, 0] == bit(True)

    def test_equality_requires_same_kind(self) -> None:
        a = Image.from_rows(Gray8, [[1]])
        b = Image.from_rows(Grayf, [[1.0]])
        assert a != b


# ---------------------------------------------------------------------------
# Single-bit images
# ---------------------------------------------------------------------------


class TestBitImages:
    """Logic operators act cell by cell."""

    def test_double_inversion(self, checkerboard: Image) -> None:
        assert ~~checkerboard == checkerboard

    def test_inversion(self, checkerboard: Image) -> None:
        inverted = ~checkerboard
        assert inverted[0, 0] == bit(True)
        assert inverted[1, 0] == bit(False)

    def test_and_with_inverse_is_empty(self, checkerboard: Image) -> None:
        result = checkerboard & ~checkerboard
        assert not result.to_array().any()

    def test_or_with_inverse_is_full(self, checkerboard: Image) -> None:
        result = checkerboard | ~checkerboard
        assert result.to_array().all()

    def test_xor_with_self_is_empty(self, checkerboard: Image) -> None:
        assert not (checkerboard ^ checkerboard).to_array().any()

    def test_and_truth_table(self) -> None:
        a = Image.from_rows(Bit, [[False, False, True, True]])
        b = Image.from_rows(Bit, [[False, True, False, True]])
        assert (a & b) == Image.from_rows(Bit, [[False, False, False, True]])
        assert (a | b) == Image.from_rows(Bit, [[False, True, True, True]])
        assert (a ^ b) == Image.from_rows(Bit, [[False, True, True, False]])

    def test_size_mismatch(self, checkerboard: Image) -> None:
        other = Image.new(Bit, 2, 2)
        other.zero()
        with pytest.raises(ConstructionError):
            checkerboard & other

    def test_logic_on_gray_rejected(self, gray3: Image) -> None:
        with pytest.raises(TypeError):
            ~gray3
