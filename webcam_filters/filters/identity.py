"""Pass-through filter."""

import numpy as np

from .base import BaseFilter, FilterState


class IdentityFilter(BaseFilter):
    """Filter that leaves the frame unchanged."""

    name = "Normal"

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        return pixels
