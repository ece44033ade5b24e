"""
Image derivative pipeline.

    from article_blog.imaging import get_derivative_cache

    path = get_derivative_cache().get_or_create(source_image, "thumbnail")
"""
from .cache import DerivativeCache, get_derivative_cache
from .filters import FilterSet, FilterSetRegistry, FilterStep, get_filter_sets
from .primitives import ImageBuffer, Primitive

__all__ = [
    "DerivativeCache",
    "get_derivative_cache",
    "FilterSet",
    "FilterSetRegistry",
    "FilterStep",
    "get_filter_sets",
    "ImageBuffer",
    "Primitive",
]
