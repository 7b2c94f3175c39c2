"""Water ripple filter based on inverse displacement mapping."""

import numpy as np

from .base import BaseFilter, FilterState, is_empty, parse_number

DEFAULT_AMPLITUDE = 20.0
DEFAULT_WAVELENGTH = 20.0
WAVE_SPEED = 5.0
ANGLE_SWING = 0.5


class WaterRippleFilter(BaseFilter):
    """Concentric ripples spreading from the frame centre.

    Every destination pixel reads the source pixel displaced by a fixed
    amplitude along an angle that oscillates with the distance from the
    centre. Destinations whose source falls outside the frame are left as
    they are. Only RGB is copied, alpha is kept.
    """

    name = "Water Ripple"

    def __init__(self) -> None:
        self._amplitude = DEFAULT_AMPLITUDE
        self._wavelength = DEFAULT_WAVELENGTH

    def configure(self, params: dict) -> None:
        """Apply user-supplied parameters."""
        super().configure(params)
        self._amplitude = parse_number(params, "amplitude", self._amplitude, float, minimum=0.0)
        wavelength = parse_number(params, "wavelength", self._wavelength, float)
        if wavelength <= 0:
            raise ValueError(f"wavelength must be > 0, got {wavelength}")
        self._wavelength = wavelength

    def source_coordinates(
        self, width: int, height: int, elapsed: float
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return the (floored) source x and y for every destination pixel."""
        ys, xs = np.indices((height, width), dtype=np.float64)
        distance = np.hypot(xs - width / 2.0, ys - height / 2.0)
        angle = np.sin(distance / self._wavelength - WAVE_SPEED * elapsed) * ANGLE_SWING
        src_x = np.floor(xs + np.cos(angle) * self._amplitude).astype(np.intp)
        src_y = np.floor(ys + np.sin(angle) * self._amplitude).astype(np.intp)
        return src_x, src_y

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        if is_empty(pixels):
            return pixels
        h, w = pixels.shape[:2]
        frozen = pixels.copy()
        src_x, src_y = self.source_coordinates(w, h, elapsed)

        inside = (src_x >= 0) & (src_x < w) & (src_y >= 0) & (src_y < h)
        dst_y, dst_x = np.nonzero(inside)
        pixels[dst_y, dst_x, :3] = frozen[src_y[inside], src_x[inside], :3]
        return pixels
