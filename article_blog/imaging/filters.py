"""
Filter sets: named, ordered pipelines of transform primitives.

A filter set is declared in settings as

    'article_card': {
        'quality': 80,
        'format': 'webp',            # optional
        'steps': [
            {'primitive': 'scale', 'params': {'dim': [600, 400]}},
            {'primitive': 'strip_metadata'},
        ],
    }

Steps run left to right, each one receiving the previous step's output.
"""
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from functools import lru_cache
from types import MappingProxyType
from typing import Optional, Tuple

from django.core.exceptions import ImproperlyConfigured

from ..conf import article_settings
from ..exceptions import InvalidParams, UnknownFilterSet, UnsupportedConversion
from . import primitives
from .primitives import PRIMITIVES, Primitive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterStep:
    """One primitive invocation inside a filter set."""

    primitive: Primitive
    params: Mapping

    def apply(self, buffer):
        return PRIMITIVES[self.primitive](buffer, **self.params)


@dataclass(frozen=True)
class FilterSet:
    """Ordered steps plus the encoding applied to their result."""

    name: str
    steps: Tuple[FilterStep, ...]
    quality: int
    format: Optional[str] = None

    @property
    def output_format(self):
        """Format the derivative is written in, if the set decides it."""
        if self.format:
            return self.format
        for step in reversed(self.steps):
            if step.primitive is Primitive.CONVERT:
                return primitives.normalize_format(step.params["format"])
        return None


class FilterSetRegistry:
    """
    Name -> FilterSet lookup.

    Filled once at startup, then frozen. Request handling only reads it.
    """

    def __init__(self):
        self._sets = {}
        self._frozen = False

    def __contains__(self, name):
        return name in self._sets

    def __iter__(self):
        return iter(self._sets.values())

    def __len__(self):
        return len(self._sets)

    def names(self):
        return list(self._sets)

    def register(self, name, steps, quality=None, format=None):
        """Validate and store a filter set. Returns the FilterSet."""
        if self._frozen:
            raise RuntimeError("Filter set registry is frozen")
        if not name or not isinstance(name, str):
            raise InvalidParams(f"Filter set name must be a non-empty string, got {name!r}")

        if quality is None:
            quality = article_settings.DEFAULT_QUALITY
        if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 100:
            raise InvalidParams(f"{name}: quality must be an integer 0-100, got {quality!r}")
        if format is not None:
            format = primitives.normalize_format(format)

        filter_set = FilterSet(
            name=name,
            steps=tuple(_build_step(name, step) for step in steps),
            quality=quality,
            format=format,
        )
        self._sets[name] = filter_set
        return filter_set

    def resolve(self, name):
        """Return the FilterSet registered as name."""
        try:
            return self._sets[name]
        except KeyError:
            raise UnknownFilterSet(name) from None

    def freeze(self):
        self._sets = MappingProxyType(dict(self._sets))
        self._frozen = True
        return self

    @classmethod
    def from_config(cls, config):
        """
        Build a frozen registry from declarative config.

        Accepts a mapping of name -> definition, or a list of definitions that
        each carry a "name" key.
        """
        if isinstance(config, Mapping):
            entries = [(name, definition) for name, definition in config.items()]
        else:
            entries = [(definition.get("name"), definition) for definition in config]

        registry = cls()
        for name, definition in entries:
            try:
                registry.register(
                    name,
                    definition.get("steps", []),
                    quality=definition.get("quality"),
                    format=definition.get("format"),
                )
            except (InvalidParams, UnsupportedConversion, AttributeError) as exc:
                raise ImproperlyConfigured(f"Invalid filter set {name!r}: {exc}") from exc
        return registry.freeze()


def _build_step(set_name, step):
    if isinstance(step, FilterStep):
        return step

    raw_primitive = step.get("primitive")
    try:
        primitive = Primitive(raw_primitive)
    except ValueError:
        raise InvalidParams(f"{set_name}: unknown primitive {raw_primitive!r}") from None

    params = dict(step.get("params") or {})
    try:
        inspect.signature(PRIMITIVES[primitive]).bind(None, **params)
    except TypeError as exc:
        raise InvalidParams(f"{set_name}: bad params for {primitive.value}: {exc}") from exc
    if primitive is Primitive.CONVERT:
        params["format"] = primitives.normalize_format(params["format"])

    return FilterStep(primitive=primitive, params=MappingProxyType(params))


def apply_filter_set(buffer, filter_set):
    """Run every step of filter_set over buffer, then apply its encoding."""
    for step in filter_set.steps:
        buffer = step.apply(buffer)

    if filter_set.format:
        buffer = primitives.convert(buffer, filter_set.format)
    return replace(buffer, quality=filter_set.quality)


def render(source_bytes, filter_set):
    """Decode source bytes, run the filter set and return encoded bytes."""
    buffer = apply_filter_set(primitives.load(source_bytes), filter_set)
    return primitives.encode(buffer)


@lru_cache(maxsize=None)
def get_filter_sets():
    """Return the process-wide registry built from ARTICLE_BLOG["FILTER_SETS"]."""
    registry = FilterSetRegistry.from_config(article_settings.FILTER_SETS)
    logger.debug("Loaded %d filter sets: %s", len(registry), ", ".join(registry.names()))
    return registry
