"""Strided 2D pixel storage.

An :class:`Image` owns one contiguous numpy buffer of shape
``(height, stride, channels)``; pixel ``(x, y)`` lives at flat offset
``stride * y + x``. Direct indexing is bounds-checked and raises
:class:`~imgcore.errors.OutOfRangeError`; boundary-aware sampling belongs to
:mod:`imgcore.core.eye`.

Typical usage::

    from imgcore.core.image import Image
    from imgcore.core.pixel import Gray8, gray

    img = Image.from_rows(Gray8, [[1, 2, 3], [4, 5, 6], [7, 8, 9]])
    img[1, 1]                     # Gray[uint8](5)
    for x, y, ref in img.iter_mut():
        ref.set(ref.get() + 10)
"""

from __future__ import annotations

import operator
from typing import Callable, Iterator, Sequence

import numpy as np
from numpy.typing import ArrayLike

from imgcore.core.pixel import AlphaPixel, BasePixel, Bit, kind_from_key, kind_key
from imgcore.core.saturate import coerce, subpixel_range
from imgcore.errors import ConstructionError, OutOfRangeError


def _check_kind(kind: type) -> np.dtype:
    if not (isinstance(kind, type) and issubclass(kind, BasePixel)):
        raise TypeError(f"Expected a pixel kind, got {kind!r}")
    if kind.subpixel is None:
        raise TypeError(
            f"{kind.__name__} has no subpixel type; "
            f"use e.g. {kind.__name__}[np.uint8]"
        )
    return kind.subpixel


def _check_dims(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise ConstructionError(
            f"Image dimensions must be positive, got {width}x{height}"
        )


# ---------------------------------------------------------------------------
# Mutable cell handle
# ---------------------------------------------------------------------------


class PixelRef:
    """Read/write handle on one cell of an image, yielded by ``iter_mut``.

    The handle stores the cell's flat buffer offset, not a pixel copy, so
    ``set`` and channel assignment write straight into the image.
    """

    __slots__ = ("_cells", "_offset", "_kind", "x", "y")

    def __init__(
        self, cells: np.ndarray, offset: int, kind: type, x: int, y: int
    ) -> None:
        self._cells = cells
        self._offset = offset
        self._kind = kind
        self.x = x
        self.y = y

    def get(self) -> BasePixel:
        """Copy of the current pixel value."""
        return self._kind._wrap(self._cells[self._offset].copy())

    def set(self, pixel: BasePixel) -> None:
        """Overwrite the cell with *pixel* (must be of the image's kind)."""
        if type(pixel) is not self._kind:
            raise TypeError(
                f"Expected {self._kind.__name__}, got {type(pixel).__name__}"
            )
        self._cells[self._offset] = pixel.raw()

    def raw_mut(self) -> np.ndarray:
        """Writable view of the cell's channels."""
        return self._cells[self._offset]

    def __getitem__(self, channel: int):
        return self._cells[self._offset, channel].item()

    def __setitem__(self, channel: int, value) -> None:
        dtype = self._cells.dtype
        self._cells[self._offset, channel] = coerce([value], dtype)[0]

    def __repr__(self) -> str:
        return f"PixelRef(x={self.x}, y={self.y}, value={self.get()!r})"


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------


class Image:
    """Owned, row-major buffer of ``width * height`` pixels of one kind.

    Construct through :meth:`new`, :meth:`from_raw`, :meth:`from_array` or
    :meth:`from_rows`; the initializer adopts an already shaped buffer.

    Args:
        kind: Concrete pixel kind, e.g. ``BGR8`` or ``Gray[np.float32]``.
        data: C-contiguous array of shape ``(height, stride, channels)``
            and the kind's subpixel dtype.
        width: Number of meaningful columns; defaults to the stride.
    """

    __slots__ = ("_kind", "_data", "_width", "_height", "_stride")

    def __init__(
        self, kind: type, data: np.ndarray, width: int | None = None
    ) -> None:
        dtype = _check_kind(kind)
        if data.ndim != 3 or data.shape[2] != kind.channels():
            raise ConstructionError(
                f"Buffer shape {data.shape} does not hold "
                f"{kind.channels()}-channel pixels"
            )
        if data.dtype != dtype:
            raise ConstructionError(
                f"Buffer dtype {data.dtype} does not match {kind.__name__}"
            )
        height, stride = data.shape[:2]
        width = stride if width is None else width
        if width > stride:
            raise ConstructionError(
                f"Width {width} exceeds stride {stride}"
            )
        _check_dims(width, height)

        self._kind = kind
        self._data = np.ascontiguousarray(data)
        self._width = width
        self._height = height
        self._stride = stride

    # -- construction --------------------------------------------------------

    @classmethod
    def new(cls, kind: type, width: int, height: int) -> Image:
        """Allocate an image without initialising its contents.

        Every cell must be written (or :meth:`fill` / :meth:`zero` called)
        before it is read.
        """
        dtype = _check_kind(kind)
        _check_dims(width, height)
        return cls(kind, np.empty((height, width, kind.channels()), dtype=dtype))

    @classmethod
    def from_raw(
        cls,
        kind: type,
        width: int,
        height: int,
        data: Sequence[BasePixel] | ArrayLike,
    ) -> Image:
        """Build an image from ``width * height`` pixels in row-major order.

        Args:
            kind: Concrete pixel kind.
            width: Image width.
            height: Image height.
            data: Either a sequence of pixels of *kind*, or any array-like
                of subpixel values that reshapes to ``(-1, channels)``.

        Raises:
            ConstructionError: If the pixel count is not ``width * height``.
        """
        dtype = _check_kind(kind)
        _check_dims(width, height)
        channels = kind.channels()

        items = data if isinstance(data, np.ndarray) else list(data)
        if len(items) and isinstance(items[0], BasePixel):
            for pixel in items:
                if type(pixel) is not kind:
                    raise ConstructionError(
                        f"Expected {kind.__name__} pixels, "
                        f"got {type(pixel).__name__}"
                    )
            arr = np.stack([pixel.raw() for pixel in items])
        else:
            arr = np.asarray(items)

        if arr.size % channels:
            raise ConstructionError(
                f"{arr.size} subpixel values do not divide into "
                f"{channels}-channel pixels"
            )
        arr = arr.reshape(-1, channels)
        if arr.shape[0] != width * height:
            raise ConstructionError(
                f"Expected {width * height} pixels for a {width}x{height} "
                f"image, got {arr.shape[0]}"
            )
        return cls(kind, coerce(arr, dtype).reshape(height, width, channels))

    @classmethod
    def from_array(cls, kind: type, array: ArrayLike, copy: bool = True) -> Image:
        """Wrap an ``(h, w, c)`` array (or ``(h, w)`` for one channel).

        Values of another dtype are converted with saturation. With
        ``copy=False`` an array that already has the right dtype is adopted
        without copying.
        """
        dtype = _check_kind(kind)
        arr = np.asarray(array)
        if arr.ndim == 2 and kind.channels() == 1:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3 or arr.shape[2] != kind.channels():
            raise ConstructionError(
                f"Array of shape {arr.shape} does not hold "
                f"{kind.channels()}-channel pixels"
            )
        if copy or arr.dtype != dtype:
            arr = coerce(arr, dtype)
        return cls(kind, arr)

    @classmethod
    def from_rows(cls, kind: type, rows: Sequence[Sequence]) -> Image:
        """Build an image from nested rows of pixels or channel values.

        Single-channel kinds accept bare scalars::

            Image.from_rows(Gray8, [[1, 2], [3, 4]])
        """
        try:
            arr = np.asarray(
                [
                    [p.raw() if isinstance(p, BasePixel) else p for p in row]
                    for row in rows
                ]
            )
        except ValueError as exc:
            raise ConstructionError(f"Rows are not rectangular: {exc}") from exc
        return cls.from_array(kind, arr, copy=False)

    # -- geometry ------------------------------------------------------------

    @property
    def kind(self) -> type:
        return self._kind

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)``."""
        return self._width, self._height

    @property
    def stride(self) -> int:
        """Pixel slots per buffer row (``>= width``)."""
        return self._stride

    def channels(self) -> int:
        return self._kind.channels()

    def bits_per_pixel(self) -> int:
        return self._kind.bits_per_pixel()

    def bytes_per_row(self) -> int:
        """``stride * bits_per_pixel / 8``: row pitch of the raw buffer."""
        return self._stride * self._kind.bits_per_pixel() // 8

    pitch = bytes_per_row

    # -- buffer access -------------------------------------------------------

    def raw(self) -> np.ndarray:
        """Read-only flat view of every subpixel, row-major."""
        view = self._data.reshape(-1)
        view.flags.writeable = False
        return view

    def raw_mut(self) -> np.ndarray:
        """Writable flat view of every subpixel, row-major."""
        return self._data.reshape(-1)

    def pixels(self) -> np.ndarray:
        """Read-only ``(height, width, channels)`` view."""
        view = self._data[:, : self._width]
        view.flags.writeable = False
        return view

    def to_array(self) -> np.ndarray:
        """Copy of the pixels as a ``(height, width, channels)`` array."""
        return self._data[:, : self._width].copy()

    def _check_row(self, y: int) -> int:
        y = operator.index(y)
        if not 0 <= y < self._height:
            raise OutOfRangeError(
                f"Row {y} outside image of height {self._height}"
            )
        return y

    def _check_cell(self, key: tuple[int, int]) -> tuple[int, int]:
        x, y = key
        x = operator.index(x)
        y = operator.index(y)
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise OutOfRangeError(
                f"Pixel ({x}, {y}) outside {self._width}x{self._height} image"
            )
        return x, y

    def row(self, y: int) -> np.ndarray:
        """Read-only ``(width, channels)`` view of row *y*.

        Raises:
            OutOfRangeError: If *y* is not in ``[0, height)``.
        """
        view = self._data[self._check_row(y), : self._width]
        view.flags.writeable = False
        return view

    def row_mut(self, y: int) -> np.ndarray:
        """Writable ``(width, channels)`` view of row *y*."""
        return self._data[self._check_row(y), : self._width]

    def __getitem__(self, key: tuple[int, int]) -> BasePixel:
        x, y = self._check_cell(key)
        return self._kind._wrap(self._data[y, x].copy())

    def __setitem__(self, key: tuple[int, int], value) -> None:
        x, y = self._check_cell(key)
        self._data[y, x] = self._as_pixel(value).raw()

    def _as_pixel(self, value) -> BasePixel:
        if isinstance(value, BasePixel):
            if type(value) is not self._kind:
                raise TypeError(
                    f"Expected {self._kind.__name__}, "
                    f"got {type(value).__name__}"
                )
            return value
        return self._kind(value)

    # -- bulk writes ---------------------------------------------------------

    def fill(self, value: BasePixel) -> None:
        """Overwrite every pixel with *value*."""
        self._data[:, : self._width] = self._as_pixel(value).raw()

    def zero(self) -> None:
        """Overwrite every pixel with the kind's zero value."""
        self._data.fill(0)

    def fill_channel(self, index: int, value) -> None:
        """Overwrite channel *index* of every pixel with *value*.

        Raises:
            ConstructionError: If *index* is not a valid channel index.
        """
        channels = self._kind.channels()
        if not 0 <= index < channels:
            raise ConstructionError(
                f"Channel index {index} out of range for "
                f"{channels}-channel pixels"
            )
        self._data[:, : self._width, index] = coerce([value], self._data.dtype)[0]

    def set_alpha(self) -> None:
        """Make every pixel fully opaque.

        Raises:
            TypeError: If the pixel kind has no alpha channel.
        """
        if not issubclass(self._kind, AlphaPixel):
            raise TypeError(f"{self._kind.__name__} has no alpha channel")
        _, hi = subpixel_range(self._data.dtype)
        self.fill_channel(self._kind.ALPHA_INDEX, hi)

    # -- iteration -----------------------------------------------------------

    def iter(self) -> Iterator[tuple[int, int, BasePixel]]:
        """Yield ``(x, y, pixel)`` for every cell in row-major order.

        Each call starts a fresh pass; pixels are copies.
        """
        wrap = self._kind._wrap
        for y in range(self._height):
            row = self._data[y]
            for x in range(self._width):
                yield x, y, wrap(row[x].copy())

    __iter__ = iter

    def iter_mut(self) -> Iterator[tuple[int, int, PixelRef]]:
        """Yield ``(x, y, PixelRef)`` for every cell in row-major order."""
        cells = self._data.reshape(-1, self._kind.channels())
        for y in range(self._height):
            for x in range(self._width):
                yield x, y, PixelRef(cells, self._stride * y + x, self._kind, x, y)

    # -- copies and comparison -----------------------------------------------

    def copy(self) -> Image:
        """Deep copy of the image."""
        return Image(self._kind, self._data.copy(), self._width)

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> Image:
        return self.copy()

    def __reduce__(self):
        return _restore_image, (*kind_key(self._kind), self._data, self._width)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return (
            self._kind is other._kind
            and self.size == other.size
            and bool(np.array_equal(self.pixels(), other.pixels()))
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"Image({self._kind.__name__}, {self._width}x{self._height})"

    # -- single-bit logic ----------------------------------------------------

    def _require_bits(self) -> None:
        if self._kind is not Bit:
            raise TypeError(
                f"Logic operators need Bit images, not {self._kind.__name__}"
            )

    def _logic(self, other: object, op: Callable) -> Image:
        self._require_bits()
        if not isinstance(other, Image):
            return NotImplemented
        other._require_bits()
        if other.size != self.size:
            raise ConstructionError(
                f"Image sizes differ: {self.size} vs {other.size}"
            )
        return Image(Bit, op(self.pixels(), other.pixels()))

    def __invert__(self) -> Image:
        self._require_bits()
        return Image(Bit, np.logical_not(self.pixels()))

    def __and__(self, other: Image) -> Image:
        return self._logic(other, np.logical_and)

    def __or__(self, other: Image) -> Image:
        return self._logic(other, np.logical_or)

    def __xor__(self, other: Image) -> Image:
        return self._logic(other, np.logical_xor)


def _restore_image(
    generic: type, subpixel: str | None, data: np.ndarray, width: int
) -> Image:
    return Image(kind_from_key(generic, subpixel), data, width)
