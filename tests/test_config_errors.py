"""Tests for imgcore.config and imgcore.errors."""

from typing import get_args

import pytest
from pydantic import ValidationError

from imgcore.config import PixelKindName, Settings
from imgcore.core.pixel import KINDS
from imgcore.errors import (
    CodecError,
    ConstructionError,
    ImgCoreError,
    OutOfRangeError,
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    """Validate default configuration values and overrides."""

    def test_default_workers(self) -> None:
        s = Settings()
        assert s.workers == 1

    def test_default_rows_per_block(self) -> None:
        s = Settings()
        assert s.rows_per_block == 64

    def test_default_png_compress_level(self) -> None:
        s = Settings()
        assert s.png_compress_level == 6

    def test_default_kind(self) -> None:
        s = Settings()
        assert s.default_kind == "BGR8"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IMGCORE_WORKERS", "4")
        monkeypatch.setenv("IMGCORE_DEFAULT_KIND", "Gray8")
        s = Settings()
        assert s.workers == 4
        assert s.default_kind == "Gray8"

    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValidationError):
            Settings(workers=0)

    def test_rejects_unknown_kind(self) -> None:
        with pytest.raises(ValidationError):
            Settings(default_kind="CMYK8")

    def test_rejects_unknown_kind_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IMGCORE_DEFAULT_KIND", "BRG8")
        with pytest.raises(ValidationError):
            Settings()

    def test_kind_names_match_pixel_aliases(self) -> None:
        assert set(get_args(PixelKindName)) == set(KINDS)

    def test_rejects_bad_compress_level(self) -> None:
        with pytest.raises(ValidationError):
            Settings(png_compress_level=10)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class TestErrorHierarchy:
    """Verify that all custom exceptions inherit from ImgCoreError."""

    def test_construction_error(self) -> None:
        assert issubclass(ConstructionError, ImgCoreError)

    def test_construction_error_is_value_error(self) -> None:
        assert issubclass(ConstructionError, ValueError)

    def test_out_of_range_error(self) -> None:
        assert issubclass(OutOfRangeError, ImgCoreError)

    def test_out_of_range_error_is_index_error(self) -> None:
        assert issubclass(OutOfRangeError, IndexError)

    def test_codec_error(self) -> None:
        assert issubclass(CodecError, ImgCoreError)

    def test_base_inherits_from_exception(self) -> None:
        assert issubclass(ImgCoreError, Exception)

    def test_catch_all_with_base(self) -> None:
        """All specific errors should be catchable via the base class."""
        for exc_class in (ConstructionError, OutOfRangeError, CodecError):
            with pytest.raises(ImgCoreError):
                raise exc_class("test")
