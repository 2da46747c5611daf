"""Pydantic contracts for declarative filter configuration.

A filter can be built directly (``BoxFilter(3, 3)``) or described as data
and built through the registry in :mod:`imgcore.core.ops`. The flow is::

    FilterParams (dict / JSON)
        → create_filter(params, settings) → Filter
        → Filter.filter(Image)            → Image

    FilterPipeline(steps=[...])
        → apply_pipeline(image, pipeline, settings) → Image

Field constraints here cover types and signs only. Oddness of window and
kernel sizes is checked by the filter constructors, which raise
``ConstructionError``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class BoxFilterParams(BaseModel):
    """Mean filter over a ``width × height`` window.

    Attributes:
        width: Window width (odd).
        height: Window height (odd).
    """

    model_config = {"frozen": True}

    name: Literal["box"] = "box"
    width: int = Field(default=3, ge=1)
    height: int = Field(default=3, ge=1)


class MedianFilterParams(BaseModel):
    """Per-channel median over a ``width × height`` window.

    Attributes:
        width: Window width (odd).
        height: Window height (odd).
    """

    model_config = {"frozen": True}

    name: Literal["median"] = "median"
    width: int = Field(default=3, ge=1)
    height: int = Field(default=3, ge=1)


class GaussianKernelParams(BaseModel):
    """Normalised square Gaussian kernel.

    Attributes:
        size: Kernel side length (odd).
        sigma: Standard deviation in pixels.
    """

    model_config = {"frozen": True}

    name: Literal["gaussian"] = "gaussian"
    size: int = Field(default=3, ge=1)
    sigma: float = Field(default=1.0, gt=0.0)


class ConvolutionParams(BaseModel):
    """Arbitrary kernel given as row-major weights.

    Attributes:
        width: Kernel width (odd).
        height: Kernel height (odd).
        weights: Exactly ``width * height`` coefficients.
        normalize: Divide the weights by their sum before use.
    """

    model_config = {"frozen": True}

    name: Literal["convolution"] = "convolution"
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    weights: tuple[float, ...] = Field(
        ...,
        description="Row-major kernel coefficients.",
    )
    normalize: bool = False


class SobelParams(BaseModel):
    """Sobel edge detector (no parameters)."""

    model_config = {"frozen": True}

    name: Literal["sobel"] = "sobel"


FilterParams = Annotated[
    Union[
        BoxFilterParams,
        MedianFilterParams,
        GaussianKernelParams,
        ConvolutionParams,
        SobelParams,
    ],
    Field(discriminator="name"),
]


class FilterPipeline(BaseModel):
    """Ordered list of filters applied one after another.

    Attributes:
        steps: Filter descriptions; each step consumes the previous
            step's output.
    """

    steps: list[FilterParams] = Field(default_factory=list)
