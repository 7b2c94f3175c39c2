"""The single active filter and the state it carries across frames."""

import logging

import numpy as np

from webcam_filters.filters import FilterDescriptor, FilterId, FilterRegistry
from webcam_filters.filters.base import BaseFilter, FilterState

logger = logging.getLogger(__name__)


class ActiveSelection:
    """Exactly one active filter, its instance and its FilterState.

    Switching replaces all three at once, so no state carries over from
    one filter to the next.
    """

    def __init__(
        self,
        filter_id: FilterId | str = FilterId.IDENTITY,
        params: dict[FilterId, dict] | None = None,
    ) -> None:
        self._params = dict(params or {})
        self._descriptor: FilterDescriptor = FilterRegistry.get(filter_id)
        self._filter: BaseFilter = self._descriptor.create(self._params.get(self._descriptor.filter_id))
        self._state: FilterState | None = FilterState() if self._descriptor.needs_state else None

    @property
    def filter_id(self) -> FilterId:
        return self._descriptor.filter_id

    @property
    def state(self) -> FilterState | None:
        return self._state

    def switch(self, filter_id: FilterId | str) -> FilterId:
        """Activate *filter_id* with fresh state and return the previous id."""
        descriptor = FilterRegistry.get(filter_id)
        previous = self._descriptor.filter_id
        self._filter = descriptor.create(self._params.get(descriptor.filter_id))
        self._descriptor = descriptor
        self._state = FilterState() if descriptor.needs_state else None
        logger.info("Active filter: %s -> %s", previous.value, descriptor.filter_id.value)
        return previous

    def apply(self, pixels: np.ndarray, elapsed: float) -> np.ndarray:
        return self._filter.apply(pixels, elapsed, self._state)

    def reset_state(self) -> None:
        """Drop carried data so the next frame reseeds it."""
        if self._state is not None:
            self._state.clear()
