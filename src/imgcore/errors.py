"""Custom exceptions for the imgcore library."""


class ImgCoreError(Exception):
    """Base exception for all imgcore errors."""


class ConstructionError(ImgCoreError, ValueError):
    """Raised when a pixel, image, kernel or filter is built from bad input.

    Typical causes: even kernel size, weight count that does not match the
    kernel dimensions, buffer length that does not match ``width * height``,
    channel index past the pixel's channel count.
    """


class OutOfRangeError(ImgCoreError, IndexError):
    """Raised when a row or pixel outside the image bounds is accessed.

    Direct indexing never clamps; use ``Eye`` for boundary-aware sampling.
    """


class CodecError(ImgCoreError):
    """Raised when the codec adapter cannot decode or encode an image.

    Typical causes: missing or corrupted file, pixel kind with no matching
    Pillow mode.
    """
