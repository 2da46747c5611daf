"""Filter registry: builds filters from declarative parameters.

Adding a new filter requires two steps:

1. Add a parameter schema with a unique ``name`` literal to
   ``imgcore.schemas`` and include it in ``FilterParams``.
2. Register a factory with signature
   ``(params, settings: Settings) -> Filter`` below.

Typical usage::

    from imgcore.core.ops import apply_pipeline, create_filter
    from imgcore.schemas import FilterPipeline, GaussianKernelParams

    blur = create_filter(GaussianKernelParams(size=5, sigma=1.5))
    out = blur.filter(img)

    pipeline = FilterPipeline.model_validate(
        {"steps": [{"name": "median"}, {"name": "sobel"}]}
    )
    edges = apply_pipeline(img, pipeline)
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from imgcore.config import Settings
from imgcore.core.image import Image
from imgcore.core.ops._base import Filter, GeneralKernel, Kernel, convolve
from imgcore.core.ops.blur import BoxFilter, GaussianKernel, MedianFilter
from imgcore.core.ops.sobel import Sobel
from imgcore.schemas import (
    BoxFilterParams,
    ConvolutionParams,
    FilterPipeline,
    GaussianKernelParams,
    MedianFilterParams,
    SobelParams,
)

logger = logging.getLogger(__name__)

# Type alias for a filter factory function.
FilterFactory = Callable[[Any, Settings], Filter]

# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

# Maps params ``name`` → factory.
_REGISTRY: dict[str, FilterFactory] = {}


def register_filter(name: str, factory: FilterFactory) -> None:
    """Register a factory under *name*.

    Args:
        name: The ``name`` literal of the parameter schema.
        factory: Builds the filter from validated params and settings.
    """
    if name in _REGISTRY:
        logger.warning("Duplicate filter name '%s', skipping.", name)
        return
    _REGISTRY[name] = factory


def _execution(settings: Settings) -> dict[str, int]:
    return {
        "workers": settings.workers,
        "rows_per_block": settings.rows_per_block,
    }


def _create_box(params: BoxFilterParams, settings: Settings) -> Filter:
    return BoxFilter(params.width, params.height, **_execution(settings))


def _create_median(params: MedianFilterParams, settings: Settings) -> Filter:
    return MedianFilter(params.width, params.height, **_execution(settings))


def _create_gaussian(params: GaussianKernelParams, settings: Settings) -> Filter:
    return GaussianKernel(params.size, params.sigma, **_execution(settings))


def _create_convolution(params: ConvolutionParams, settings: Settings) -> Filter:
    kernel = GeneralKernel(
        params.width, params.height, params.weights, **_execution(settings)
    )
    return kernel.normalized() if params.normalize else kernel


def _create_sobel(params: SobelParams, settings: Settings) -> Filter:
    return Sobel(**_execution(settings))


# Register built-in filters.
register_filter("box", _create_box)
register_filter("median", _create_median)
register_filter("gaussian", _create_gaussian)
register_filter("convolution", _create_convolution)
register_filter("sobel", _create_sobel)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_registered_names() -> list[str]:
    """Return every registered filter name, sorted."""
    return sorted(_REGISTRY)


def create_filter(params: Any, settings: Settings | None = None) -> Filter:
    """Instantiate the filter described by *params*.

    Args:
        params: One of the parameter schemas from ``imgcore.schemas``.
        settings: Execution settings; defaults are loaded if omitted.

    Returns:
        A ``Filter`` ready to apply.

    Raises:
        ValueError: If ``params.name`` is not registered.
        ConstructionError: If the parameters describe an invalid filter.
    """
    name = getattr(params, "name", None)
    if name not in _REGISTRY:
        raise ValueError(
            f"Unknown filter '{name}'. Registered: {get_registered_names()}"
        )
    return _REGISTRY[name](params, settings or Settings())


def apply_pipeline(
    image: Image,
    pipeline: FilterPipeline,
    settings: Settings | None = None,
) -> Image:
    """Apply every step of *pipeline* in order.

    All filters are built before the first one runs, so an invalid step
    fails without any filtering work being done.

    Returns:
        The output of the last step, or a copy of *image* for an empty
        pipeline.
    """
    settings = settings or Settings()
    filters = [create_filter(step, settings) for step in pipeline.steps]

    result = image.copy()
    for index, step_filter in enumerate(filters):
        logger.debug("Pipeline step %d: %r", index, step_filter)
        result = step_filter.filter(result)
    return result


# Re-export key types for convenience.
__all__ = [
    "BoxFilter",
    "Filter",
    "GaussianKernel",
    "GeneralKernel",
    "Kernel",
    "MedianFilter",
    "Sobel",
    "apply_pipeline",
    "convolve",
    "create_filter",
    "get_registered_names",
    "register_filter",
]
