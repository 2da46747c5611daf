"""Pixel kinds: fixed-size tuples of subpixel values.

A pixel kind fixes its channel count and channel order at class level and
is made concrete by choosing a subpixel type::

    from imgcore.core.pixel import BGR, Gray

    BGR8 = BGR[np.uint8]
    p = BGR8([10, 20, 30])
    q = p + 250          # saturates: BGR[uint8](255, 255, 255)

Channel layouts:

======  ========  ==========================  ============
Kind    Channels  Order                       Alpha index
======  ========  ==========================  ============
Gray    1         ``[Y]``                     -
BGR     3         ``[B, G, R]``               -
BGRA    4         ``[B, G, R, A]``            3
RGBA    4         ``[R, G, B, A]``            3
Bit     1         ``[bool]``                  -
======  ========  ==========================  ============

``AlphaPixel`` and ``RGBPixel`` are optional capabilities; gray and bit
pixels carry neither.
"""

from __future__ import annotations

import numbers
from typing import ClassVar, Iterator, Sequence

import numpy as np
from numpy.typing import ArrayLike, DTypeLike

from imgcore.core.saturate import (
    check_subpixel,
    coerce,
    subpixel_range,
    write_back,
)
from imgcore.errors import ConstructionError

# (kind, dtype) → specialised class, so ``Gray[np.uint8] is Gray[np.uint8]``.
_SPECIALISED: dict[tuple[type, np.dtype], type] = {}


# ---------------------------------------------------------------------------
# Base contract
# ---------------------------------------------------------------------------


class BasePixel:
    """Storage, identity and channel access shared by every pixel kind.

    Subclasses set ``CHANNELS`` and ``LAYOUT``; the subpixel type is bound
    by subscripting the kind (``Gray[np.float32]``).
    """

    CHANNELS: ClassVar[int] = 0
    LAYOUT: ClassVar[str] = ""
    subpixel: ClassVar[np.dtype | None] = None
    # Unspecialised kind this class was built from; None for module-level kinds.
    generic: ClassVar[type | None] = None

    # numpy scalars on the left must defer to our reflected operators.
    __array_ufunc__ = None

    __slots__ = ("_data",)

    def __class_getitem__(cls, subpixel: DTypeLike) -> type:
        if cls.subpixel is not None:
            raise TypeError(
                f"{cls.__name__} already has subpixel type {cls.subpixel}"
            )
        dtype = check_subpixel(subpixel)
        key = (cls, dtype)
        kind = _SPECIALISED.get(key)
        if kind is None:
            kind = type(
                f"{cls.__name__}[{dtype.name}]",
                (cls,),
                {"__slots__": (), "subpixel": dtype, "generic": cls},
            )
            _SPECIALISED[key] = kind
        return kind

    def __init__(self, values: ArrayLike) -> None:
        dtype = type(self)._dtype()
        arr = np.asarray(values)
        if arr.ndim != 1 or arr.shape[0] != self.CHANNELS:
            raise ConstructionError(
                f"{type(self).__name__} needs exactly {self.CHANNELS} "
                f"channel value(s), got shape {arr.shape}"
            )
        self._data = coerce(arr, dtype)

    # -- kind-level constants ------------------------------------------------

    @classmethod
    def _dtype(cls) -> np.dtype:
        if cls.subpixel is None:
            raise TypeError(
                f"{cls.__name__} has no subpixel type; "
                f"use e.g. {cls.__name__}[np.uint8]"
            )
        return cls.subpixel

    @classmethod
    def channels(cls) -> int:
        """Number of channels of this kind."""
        return cls.CHANNELS

    @classmethod
    def itemsize(cls) -> int:
        """Bytes occupied by one pixel (packed, no padding)."""
        return cls.CHANNELS * cls._dtype().itemsize

    @classmethod
    def bits_per_pixel(cls) -> int:
        """Bits occupied by one pixel in the raw buffer."""
        return 8 * cls.itemsize()

    @classmethod
    def subpixel_range(cls) -> tuple[float, float]:
        """``(min, max)`` of the subpixel type."""
        return subpixel_range(cls._dtype())

    @classmethod
    def zero(cls) -> BasePixel:
        """Pixel with every channel set to zero."""
        return cls._wrap(np.zeros(cls.CHANNELS, dtype=cls._dtype()))

    @classmethod
    def from_raw(cls, values: Sequence) -> BasePixel:
        """Build a pixel from exactly ``channels()`` subpixel values.

        Raises:
            ConstructionError: If the number of values differs.
        """
        return cls(values)

    @classmethod
    def splat(cls, value) -> BasePixel:
        """Pixel with every channel set to *value*."""
        return cls([value] * cls.CHANNELS)

    @classmethod
    def _wrap(cls, data: np.ndarray) -> BasePixel:
        # Takes ownership of *data* without copying or validating.
        pixel = cls.__new__(cls)
        pixel._data = data
        return pixel

    # -- channel access ------------------------------------------------------

    def raw(self) -> np.ndarray:
        """Read-only view of the channel values."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def raw_mut(self) -> np.ndarray:
        """Writable view of the channel values."""
        return self._data

    def tolist(self) -> list:
        return self._data.tolist()

    def __getitem__(self, index: int):
        return self._data[index].item()

    def __setitem__(self, index: int, value) -> None:
        self._data[index] = coerce([value], self._data.dtype)[0]

    def __len__(self) -> int:
        return self.CHANNELS

    def __iter__(self) -> Iterator:
        return iter(self._data.tolist())

    # -- identity ------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return bool(np.array_equal(self._data, other._data))

    def __hash__(self) -> int:
        return hash((type(self), tuple(self._data.tolist())))

    def __repr__(self) -> str:
        values = ", ".join(repr(v) for v in self._data.tolist())
        return f"{type(self).__name__}({values})"

    def __reduce__(self):
        return _restore_pixel, (*kind_key(type(self)), self._data.tolist())


# ---------------------------------------------------------------------------
# Numeric pixels
# ---------------------------------------------------------------------------


class Pixel(BasePixel):
    """Pixel kind with saturating per-channel arithmetic.

    ``+``, ``-`` and ``*`` accept another pixel of the same kind
    (element-wise) or a real scalar. Results are clamped to the subpixel
    range; integer subpixels are rounded to nearest.
    """

    __slots__ = ()

    def _operand(self, other) -> np.ndarray | float | None:
        if isinstance(other, BasePixel):
            if type(other) is not type(self):
                return None
            return other._data.astype(np.float64)
        if isinstance(other, numbers.Real):
            return float(other)
        return None

    def _apply(self, other, op) -> Pixel:
        rhs = self._operand(other)
        if rhs is None:
            return NotImplemented
        result = op(self._data.astype(np.float64), rhs)
        return self._wrap(write_back(result, self._data.dtype))

    def __add__(self, other) -> Pixel:
        return self._apply(other, np.add)

    def __radd__(self, other) -> Pixel:
        return self._apply(other, np.add)

    def __sub__(self, other) -> Pixel:
        return self._apply(other, np.subtract)

    def __mul__(self, other) -> Pixel:
        return self._apply(other, np.multiply)

    def __rmul__(self, other) -> Pixel:
        return self._apply(other, np.multiply)

    def saturating_add(self, other: Pixel) -> Pixel:
        """Channel-wise sum clamped to the subpixel maximum."""
        result = self._apply(other, np.add)
        if result is NotImplemented:
            raise TypeError(f"Cannot add {other!r} to {self!r}")
        return result

    def saturating_sub(self, other: Pixel) -> Pixel:
        """Channel-wise difference clamped to the subpixel minimum."""
        result = self._apply(other, np.subtract)
        if result is NotImplemented:
            raise TypeError(f"Cannot subtract {other!r} from {self!r}")
        return result

    def _check_blend_operands(self, *others: object) -> None:
        for other in others:
            if type(other) is not type(self):
                raise TypeError(
                    f"Cannot blend {type(other).__name__} "
                    f"with {type(self).__name__}"
                )

    def blend(self, other: Pixel, alpha: float) -> Pixel:
        """Linear mix: ``self * alpha + other * (1 - alpha)``.

        Args:
            other: Pixel of the same kind.
            alpha: Weight of *self*, expected in ``[0, 1]``.

        Raises:
            TypeError: If *other* is not a pixel of this kind.
        """
        self._check_blend_operands(other)
        mixed = (
            self._data.astype(np.float64) * alpha
            + other._data.astype(np.float64) * (1.0 - alpha)
        )
        return self._wrap(write_back(mixed, self._data.dtype))

    def blend4(
        self, b: Pixel, c: Pixel, d: Pixel, u: float, v: float
    ) -> Pixel:
        """Bilinear mix of four pixels.

        Weights are ``u*v`` for *self*, ``(1-u)*v`` for *b*, ``u*(1-v)``
        for *c* and ``(1-u)*(1-v)`` for *d*.

        Raises:
            TypeError: If *b*, *c* or *d* is not a pixel of this kind.
        """
        self._check_blend_operands(b, c, d)
        weights = (u * v, (1.0 - u) * v, u * (1.0 - v), (1.0 - u) * (1.0 - v))
        mixed = np.zeros(self.CHANNELS, dtype=np.float64)
        for pixel, weight in zip((self, b, c, d), weights):
            mixed += pixel._data.astype(np.float64) * weight
        return self._wrap(write_back(mixed, self._data.dtype))


class AlphaPixel:
    """Capability: the kind carries an alpha channel at ``ALPHA_INDEX``."""

    ALPHA_INDEX: ClassVar[int]

    __slots__ = ()

    @classmethod
    def alpha_index(cls) -> int:
        return cls.ALPHA_INDEX


class RGBPixel:
    """Capability: the kind carries red, green and blue channels."""

    RED_INDEX: ClassVar[int]
    GREEN_INDEX: ClassVar[int]
    BLUE_INDEX: ClassVar[int]

    __slots__ = ()

    @classmethod
    def red_index(cls) -> int:
        return cls.RED_INDEX

    @classmethod
    def green_index(cls) -> int:
        return cls.GREEN_INDEX

    @classmethod
    def blue_index(cls) -> int:
        return cls.BLUE_INDEX


class Gray(Pixel):
    """Single intensity channel."""

    CHANNELS = 1
    LAYOUT = "Y"
    __slots__ = ()


class BGR(Pixel, RGBPixel):
    """Blue, green, red."""

    CHANNELS = 3
    LAYOUT = "BGR"
    BLUE_INDEX, GREEN_INDEX, RED_INDEX = 0, 1, 2
    __slots__ = ()


class BGRA(Pixel, RGBPixel, AlphaPixel):
    """Blue, green, red, alpha."""

    CHANNELS = 4
    LAYOUT = "BGRA"
    BLUE_INDEX, GREEN_INDEX, RED_INDEX = 0, 1, 2
    ALPHA_INDEX = 3
    __slots__ = ()


class RGBA(Pixel, RGBPixel, AlphaPixel):
    """Red, green, blue, alpha."""

    CHANNELS = 4
    LAYOUT = "RGBA"
    RED_INDEX, GREEN_INDEX, BLUE_INDEX = 0, 1, 2
    ALPHA_INDEX = 3
    __slots__ = ()


# ---------------------------------------------------------------------------
# Single-bit pixels
# ---------------------------------------------------------------------------


class Bit(BasePixel):
    """One boolean channel with logic operators instead of arithmetic."""

    CHANNELS = 1
    LAYOUT = "1"
    subpixel = np.dtype(np.bool_)
    __slots__ = ()

    def __bool__(self) -> bool:
        return bool(self._data[0])

    def __invert__(self) -> Bit:
        return self._wrap(~self._data)

    def __and__(self, other: Bit) -> Bit:
        if not isinstance(other, Bit):
            return NotImplemented
        return self._wrap(self._data & other._data)

    def __or__(self, other: Bit) -> Bit:
        if not isinstance(other, Bit):
            return NotImplemented
        return self._wrap(self._data | other._data)

    def __xor__(self, other: Bit) -> Bit:
        if not isinstance(other, Bit):
            return NotImplemented
        return self._wrap(self._data ^ other._data)


# ---------------------------------------------------------------------------
# Concrete kinds and literals
# ---------------------------------------------------------------------------

Gray8 = Gray[np.uint8]
BGR8 = BGR[np.uint8]
BGRA8 = BGRA[np.uint8]
RGBA8 = RGBA[np.uint8]

Grayf = Gray[np.float32]
BGRf = BGR[np.float32]
BGRAf = BGRA[np.float32]
RGBAf = RGBA[np.float32]

KINDS: dict[str, type] = {
    "Gray8": Gray8,
    "BGR8": BGR8,
    "BGRA8": BGRA8,
    "RGBA8": RGBA8,
    "Grayf": Grayf,
    "BGRf": BGRf,
    "BGRAf": BGRAf,
    "RGBAf": RGBAf,
    "Bit": Bit,
}


def kind_key(kind: type) -> tuple[type, str | None]:
    """``(generic kind, subpixel dtype string)`` that rebuilds *kind*.

    Specialised classes such as ``Gray[uint8]`` have no importable name,
    so pickles refer to them through this key instead.
    """
    if kind.generic is None:
        return kind, None
    return kind.generic, kind.subpixel.str


def kind_from_key(generic: type, subpixel: str | None) -> type:
    """Inverse of :func:`kind_key`."""
    return generic if subpixel is None else generic[subpixel]


def _restore_pixel(generic: type, subpixel: str | None, values: list) -> BasePixel:
    return kind_from_key(generic, subpixel)(values)


def kind_by_name(name: str) -> type:
    """Look up one of the predefined kinds by its alias (``"BGR8"`` …).

    Raises:
        ConstructionError: If the alias is unknown.
    """
    try:
        return KINDS[name]
    except KeyError:
        raise ConstructionError(
            f"Unknown pixel kind '{name}'. Known: {sorted(KINDS)}"
        ) from None


def gray(value, subpixel: DTypeLike = np.uint8) -> Pixel:
    return Gray[subpixel]([value])


def bgr(b, g, r, subpixel: DTypeLike = np.uint8) -> Pixel:
    return BGR[subpixel]([b, g, r])


def bgra(b, g, r, a, subpixel: DTypeLike = np.uint8) -> Pixel:
    return BGRA[subpixel]([b, g, r, a])


def rgba(r, g, b, a, subpixel: DTypeLike = np.uint8) -> Pixel:
    return RGBA[subpixel]([r, g, b, a])


def bit(value: bool) -> Bit:
    return Bit([bool(value)])
