"""Boundary-aware sampling ("Eye").

An :class:`Eye` answers "which pixel value applies at ``(x, y)``?" for any
integer coordinate. In-bounds coordinates always read the image; anything
else is resolved by the eye's :class:`Boundary` policy:

- ``Boundary.constant(p)``: return ``p``.
- ``Boundary.extend()``: clamp each axis into ``[0, dim - 1]`` (default).
- ``Boundary.mirror()``: ``x < 0`` becomes ``-x``; then ``x > dim``
  becomes ``dim - (x % dim)``. This is *not* textbook reflection
  (``2 * dim - 1 - x``): the reflection point jumps at the border. A result that still
  equals ``dim`` (``x == dim``, ``x == -dim``, multiples of ``dim``) is
  pinned to ``dim - 1``.

The filter engine samples whole windows at once through
:func:`sample_grid`, which applies the same rules to a coordinate grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike

from imgcore.core.pixel import BasePixel
from imgcore.errors import ConstructionError

if TYPE_CHECKING:
    from imgcore.core.image import Image


class BoundaryMode(str, Enum):
    """Out-of-bounds sampling rules."""

    CONSTANT = "constant"
    EXTEND = "extend"
    MIRROR = "mirror"


@dataclass(frozen=True)
class Boundary:
    """Immutable boundary policy.

    Attributes:
        mode: Which rule to apply off the image.
        value: The pixel returned by ``CONSTANT``; ``None`` otherwise.
    """

    mode: BoundaryMode = BoundaryMode.EXTEND
    value: BasePixel | None = None

    def __post_init__(self) -> None:
        if (self.mode is BoundaryMode.CONSTANT) != (self.value is not None):
            raise ConstructionError(
                "A constant boundary needs exactly one pixel value; "
                "other modes take none"
            )

    @classmethod
    def constant(cls, value: BasePixel) -> Boundary:
        return cls(BoundaryMode.CONSTANT, value)

    @classmethod
    def extend(cls) -> Boundary:
        return cls(BoundaryMode.EXTEND)

    @classmethod
    def mirror(cls) -> Boundary:
        return cls(BoundaryMode.MIRROR)


EXTEND = Boundary.extend()
MIRROR = Boundary.mirror()


def resolve_axis(coords: ArrayLike, dim: int, mode: BoundaryMode) -> np.ndarray:
    """Map coordinates along one axis into ``[0, dim)``.

    Only ``EXTEND`` and ``MIRROR`` remap coordinates; ``CONSTANT`` is
    handled by the caller because it replaces values instead.
    """
    coords = np.asarray(coords, dtype=np.intp)
    if mode is BoundaryMode.EXTEND:
        return np.clip(coords, 0, dim - 1)
    if mode is BoundaryMode.MIRROR:
        mirrored = np.abs(coords)
        mirrored = np.where(mirrored > dim, dim - mirrored % dim, mirrored)
        return np.minimum(mirrored, dim - 1)
    raise ValueError(f"{mode} does not remap coordinates")


def sample_grid(
    image: Image,
    xs: ArrayLike,
    ys: ArrayLike,
    boundary: Boundary = EXTEND,
) -> np.ndarray:
    """Sample every ``(x, y)`` of the grid ``ys × xs``.

    Args:
        image: Source image.
        xs: Column coordinates, any integers.
        ys: Row coordinates, any integers.
        boundary: Policy for coordinates off the image.

    Returns:
        A new array of shape ``(len(ys), len(xs), channels)`` in the
        image's subpixel dtype.
    """
    pixels = image.pixels()
    height, width = pixels.shape[:2]
    xs = np.asarray(xs, dtype=np.intp)
    ys = np.asarray(ys, dtype=np.intp)

    if boundary.mode is BoundaryMode.CONSTANT:
        if type(boundary.value) is not image.kind:
            raise TypeError(
                f"Constant boundary holds {type(boundary.value).__name__}, "
                f"image holds {image.kind.__name__}"
            )
        grid = pixels[np.ix_(np.clip(ys, 0, height - 1), np.clip(xs, 0, width - 1))]
        inside = ((ys >= 0) & (ys < height))[:, np.newaxis] & (
            (xs >= 0) & (xs < width)
        )[np.newaxis, :]
        grid[~inside] = boundary.value.raw()
        return grid

    return pixels[
        np.ix_(
            resolve_axis(ys, height, boundary.mode),
            resolve_axis(xs, width, boundary.mode),
        )
    ]


@dataclass(frozen=True)
class Eye:
    """A coordinate bound to a boundary policy.

    Example::

        Eye(-1, 1, Boundary.mirror()).look(img)
    """

    x: int
    y: int
    boundary: Boundary = EXTEND

    def look(self, image: Image) -> BasePixel:
        """Return the pixel that applies at this eye's coordinate."""
        if 0 <= self.x < image.width and 0 <= self.y < image.height:
            return image[self.x, self.y]
        sample = sample_grid(image, [self.x], [self.y], self.boundary)
        return image.kind._wrap(sample[0, 0].copy())
