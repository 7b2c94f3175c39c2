"""Filter registry and filter implementations."""

from dataclasses import dataclass
from enum import Enum

from .ascii_art import AsciiArtFilter
from .base import BaseFilter, FilterState
from .identity import IdentityFilter
from .kaleidoscope import KaleidoscopeFilter
from .pixelate import PixelateFilter
from .temporal_blend import TemporalBlendFilter
from .water_ripple import WaterRippleFilter


class FilterId(str, Enum):
    """Stable identity of every built-in filter."""

    IDENTITY = "identity"
    TEMPORAL_BLEND = "temporal_blend"
    PIXELATE = "pixelate"
    KALEIDOSCOPE = "kaleidoscope"
    WATER_RIPPLE = "water_ripple"
    ASCII = "ascii"


@dataclass(frozen=True)
class FilterDescriptor:
    """Catalog entry binding a filter id to its display name and class."""

    filter_id: FilterId
    name: str
    filter_cls: type[BaseFilter]

    @property
    def needs_state(self) -> bool:
        return self.filter_cls.needs_state

    def create(self, params: dict | None = None) -> BaseFilter:
        """Instantiate the filter, optionally configured with *params*."""
        flt = self.filter_cls()
        if params:
            flt.configure(params)
        return flt


class FilterRegistry:
    """Registry of available live filters, in display order."""

    _descriptors: dict[FilterId, FilterDescriptor] = {}

    @classmethod
    def register(cls, filter_id: FilterId, filter_cls: type[BaseFilter]) -> type[BaseFilter]:
        """Register a filter class under *filter_id*."""
        cls._descriptors[filter_id] = FilterDescriptor(filter_id, filter_cls.name, filter_cls)
        return filter_cls

    @classmethod
    def get(cls, filter_id: "FilterId | str") -> FilterDescriptor:
        """Return the descriptor for *filter_id* (enum member or its value)."""
        try:
            return cls._descriptors[FilterId(filter_id)]
        except ValueError:
            raise KeyError(f"Unknown filter: {filter_id}") from None

    @classmethod
    def get_filter_ids(cls) -> list[FilterId]:
        """Return all registered filter ids."""
        return list(cls._descriptors.keys())

    @classmethod
    def get_descriptors(cls) -> list[FilterDescriptor]:
        return list(cls._descriptors.values())

    @classmethod
    def create_filter(cls, filter_id: "FilterId | str", params: dict | None = None) -> BaseFilter:
        """Instantiate and return a filter by id."""
        return cls.get(filter_id).create(params)


# Auto-register built-in filters
FilterRegistry.register(FilterId.IDENTITY, IdentityFilter)
FilterRegistry.register(FilterId.TEMPORAL_BLEND, TemporalBlendFilter)
FilterRegistry.register(FilterId.PIXELATE, PixelateFilter)
FilterRegistry.register(FilterId.KALEIDOSCOPE, KaleidoscopeFilter)
FilterRegistry.register(FilterId.WATER_RIPPLE, WaterRippleFilter)
FilterRegistry.register(FilterId.ASCII, AsciiArtFilter)

__all__ = [
    "BaseFilter",
    "FilterDescriptor",
    "FilterId",
    "FilterRegistry",
    "FilterState",
]
