"""Sobel edge detector.

The horizontal and vertical gradient images are each convolved and
clamped to the subpixel range on their own, then combined with saturating
addition. This approximates gradient magnitude; it is not
``sqrt(gx² + gy²)``. On unsigned subpixels negative gradients clamp to 0
before the two are added.
"""

from __future__ import annotations

import logging

from imgcore.core.image import Image
from imgcore.core.ops._base import GeneralKernel
from imgcore.core.saturate import saturating_add

logger = logging.getLogger(__name__)

SOBEL_X: tuple[float, ...] = (
    -1.0, 0.0, 1.0,
    -2.0, 0.0, 2.0,
    -1.0, 0.0, 1.0,
)
SOBEL_Y: tuple[float, ...] = (
    -1.0, -2.0, -1.0,
    0.0, 0.0, 0.0,
    1.0, 2.0, 1.0,
)


class Sobel:
    """3×3 Sobel filter combining both gradients by saturating addition."""

    def __init__(self, *, workers: int = 1, rows_per_block: int = 64) -> None:
        self.kernel_x = GeneralKernel(
            3, 3, SOBEL_X, workers=workers, rows_per_block=rows_per_block
        )
        self.kernel_y = GeneralKernel(
            3, 3, SOBEL_Y, workers=workers, rows_per_block=rows_per_block
        )

    def filter(self, image: Image) -> Image:
        logger.debug("Sobel on %dx%d image", image.width, image.height)
        gradient_x = self.kernel_x.filter(image)
        gradient_y = self.kernel_y.filter(image)
        combined = saturating_add(
            gradient_x.pixels(), gradient_y.pixels(), image.kind.subpixel
        )
        return Image.from_array(image.kind, combined, copy=False)

    def __repr__(self) -> str:
        return "Sobel()"
