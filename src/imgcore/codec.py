"""Pillow adapter for the codec buffer contract.

Decoding and encoding are done entirely by Pillow; this module only moves
pixels between PIL images and :class:`~imgcore.core.image.Image` buffers,
fixing up channel order on the way:

=========  ==========  =========================
Kind       PIL mode    Channel order in buffer
=========  ==========  =========================
``Gray8``  ``L``       ``[Y]``
``Grayf``  ``F``       ``[Y]``
``Bit``    ``1``       ``[bool]``
``BGR8``   ``RGB``     ``[B, G, R]``
``BGRA8``  ``RGBA``    ``[B, G, R, A]``
``RGBA8``  ``RGBA``    ``[R, G, B, A]``
=========  ==========  =========================

Typical usage::

    from imgcore.codec import read_image, write_image
    from imgcore.core.ops import GaussianKernel
    from imgcore.core.pixel import BGR8

    img = read_image("photo.jpg", BGR8)
    write_image(GaussianKernel(5, 1.0).filter(img), "blurred.png")
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image as PILImage

from imgcore.config import Settings
from imgcore.core.image import Image
from imgcore.core.pixel import BGR8, BGRA8, RGBA8, Bit, Gray8, Grayf, kind_by_name
from imgcore.errors import CodecError, ConstructionError

logger = logging.getLogger(__name__)

# kind → (PIL mode, channel permutation between PIL and buffer order).
_MODES: dict[type, tuple[str, list[int] | None]] = {
    Gray8: ("L", None),
    Grayf: ("F", None),
    Bit: ("1", None),
    BGR8: ("RGB", [2, 1, 0]),
    BGRA8: ("RGBA", [2, 1, 0, 3]),
    RGBA8: ("RGBA", None),
}


def _mode_for(kind: type) -> tuple[str, list[int] | None]:
    try:
        return _MODES[kind]
    except KeyError:
        raise CodecError(
            f"No Pillow mode for pixel kind {kind.__name__}"
        ) from None


def _resolve_kind(kind: type | None, settings: Settings | None) -> type:
    if kind is not None:
        return kind
    return kind_by_name((settings or Settings()).default_kind)


# ---------------------------------------------------------------------------
# PIL conversion
# ---------------------------------------------------------------------------


def from_pil(
    pil_image: PILImage.Image,
    kind: type | None = None,
    settings: Settings | None = None,
) -> Image:
    """Convert a PIL image into an :class:`Image` of *kind*.

    Args:
        pil_image: Any PIL image; it is converted to the kind's mode.
        kind: Target pixel kind. Defaults to ``settings.default_kind``.
        settings: Used only to resolve the default kind.

    Raises:
        CodecError: If the kind has no Pillow mode or conversion fails.
    """
    kind = _resolve_kind(kind, settings)
    mode, order = _mode_for(kind)
    try:
        converted = pil_image if pil_image.mode == mode else pil_image.convert(mode)
    except ValueError as exc:
        raise CodecError(
            f"Cannot convert PIL mode {pil_image.mode} to {mode}: {exc}"
        ) from exc

    arr = np.asarray(converted)
    if order is not None:
        arr = arr[..., order]
    return Image.from_array(kind, arr)


def to_pil(image: Image) -> PILImage.Image:
    """Convert an :class:`Image` into a PIL image in the matching mode.

    Raises:
        CodecError: If the image's kind has no Pillow mode.
    """
    mode, order = _mode_for(image.kind)
    arr = image.to_array()
    if order is not None:
        arr = arr[..., order]
    if arr.shape[2] == 1:
        arr = arr[..., 0]
    pil_image = PILImage.fromarray(np.ascontiguousarray(arr))
    if pil_image.mode != mode:
        pil_image = pil_image.convert(mode)
    return pil_image


# ---------------------------------------------------------------------------
# Raw buffers
# ---------------------------------------------------------------------------


def from_buffer(kind: type, width: int, height: int, buffer: bytes) -> Image:
    """Build an image from a raw, row-major subpixel buffer.

    The buffer must hold exactly ``width * height`` pixels in the kind's
    channel order and native byte order.

    Raises:
        ConstructionError: If the buffer length does not match.
    """
    expected = width * height * kind.itemsize()
    if len(buffer) != expected:
        raise ConstructionError(
            f"A {width}x{height} {kind.__name__} buffer needs {expected} "
            f"bytes, got {len(buffer)}"
        )
    data = np.frombuffer(buffer, dtype=kind.subpixel)
    return Image.from_raw(kind, width, height, data)


def to_buffer(image: Image) -> bytes:
    """Serialise the raw subpixel buffer (``bytes_per_row * height`` bytes)."""
    return image.raw().tobytes()


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def read_image(
    path: str | Path,
    kind: type | None = None,
    settings: Settings | None = None,
) -> Image:
    """Decode an image file with Pillow.

    Args:
        path: File to read.
        kind: Target pixel kind. Defaults to ``settings.default_kind``.
        settings: Used only to resolve the default kind.

    Raises:
        CodecError: If the file is missing, unreadable or undecodable.
    """
    try:
        with PILImage.open(path) as pil_image:
            pil_image.load()
            image = from_pil(pil_image, kind, settings)
    except OSError as exc:
        raise CodecError(f"Cannot read image {path}: {exc}") from exc

    logger.info(
        "Read %s as %dx%d %s", path, image.width, image.height, image.kind.__name__
    )
    return image


def write_image(
    image: Image,
    path: str | Path,
    format: str | None = None,
) -> None:
    """Encode *image* to *path* with Pillow.

    Args:
        image: Image to save.
        path: Destination file.
        format: Pillow format name; inferred from the extension if omitted.

    Raises:
        CodecError: If Pillow cannot encode the image.
    """
    pil_image = to_pil(image)
    try:
        pil_image.save(path, format=format)
    except (OSError, ValueError, KeyError) as exc:
        raise CodecError(f"Cannot write image {path}: {exc}") from exc
    logger.info("Wrote %dx%d image to %s", image.width, image.height, path)


def image_to_png_bytes(image: Image, settings: Settings | None = None) -> bytes:
    """Serialize an image to PNG bytes.

    Args:
        image: Any image whose kind has a Pillow mode.
        settings: Supplies ``png_compress_level``.

    Returns:
        Raw PNG file contents as ``bytes``.

    Raises:
        CodecError: If PNG cannot store the image's mode (e.g. ``F``).
    """
    settings = settings or Settings()
    buffer = io.BytesIO()
    try:
        to_pil(image).save(
            buffer, format="PNG", compress_level=settings.png_compress_level
        )
    except OSError as exc:
        raise CodecError(f"Cannot encode image as PNG: {exc}") from exc
    return buffer.getvalue()
