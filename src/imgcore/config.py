"""Library settings loaded from environment and .env files."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Aliases accepted by ``imgcore.core.pixel.kind_by_name``.
PixelKindName = Literal[
    "Gray8", "BGR8", "BGRA8", "RGBA8", "Grayf", "BGRf", "BGRAf", "RGBAf", "Bit"
]


class Settings(BaseSettings):
    """Execution and codec defaults for imgcore.

    Values are loaded in order: field defaults → .env file → environment
    variables. Environment variables are prefixed with ``IMGCORE_``.

    None of these values change what a filter computes, only how the work
    is scheduled and how images are encoded.

    Attributes:
        workers: Number of threads used to process row blocks. ``1`` runs
            every block inline on the calling thread.
        rows_per_block: Number of output rows in one work unit.
        png_compress_level: zlib level used by ``image_to_png_bytes``.
        default_kind: Name of the pixel kind the codec adapter decodes into
            when the caller does not ask for one.
    """

    model_config = SettingsConfigDict(
        env_prefix="IMGCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Filter execution ---
    workers: int = Field(default=1, ge=1)
    rows_per_block: int = Field(default=64, ge=1)

    # --- Codec ---
    png_compress_level: int = Field(default=6, ge=0, le=9)
    default_kind: PixelKindName = "BGR8"
