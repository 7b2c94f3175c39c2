"""Motion trail filter blending each frame with the previous output."""

import cv2
import numpy as np

from .base import BaseFilter, FilterState, is_empty, parse_number

DEFAULT_ALPHA = 0.8


class TemporalBlendFilter(BaseFilter):
    """Exponential blend of the current frame over the carried previous frame.

    ``out = alpha * current + (1 - alpha) * previous``. The blended output
    becomes the next tick's ``previous``, so moving objects leave a trail.
    """

    name = "Motion Trail"
    needs_state = True

    def __init__(self) -> None:
        self._alpha = DEFAULT_ALPHA

    def configure(self, params: dict) -> None:
        """Apply user-supplied parameters."""
        super().configure(params)
        alpha = parse_number(params, "alpha", self._alpha, float, minimum=0.0)
        if alpha > 1.0:
            raise ValueError(f"alpha must be <= 1.0, got {alpha}")
        self._alpha = alpha

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        """Blend *pixels* with ``state.previous``.

        Without usable history (first tick after activation or a resolution
        change) the state is seeded from this frame and nothing is blended.
        """
        if is_empty(pixels) or state is None:
            return pixels
        h, w = pixels.shape[:2]
        if not state.matches(w, h):
            state.reseed(pixels)
            return pixels

        cv2.addWeighted(pixels, self._alpha, state.previous, 1.0 - self._alpha, 0.0, dst=pixels)
        state.previous[...] = pixels
        return pixels
