"""Block pixelation filter."""

import numpy as np

from .base import BaseFilter, FilterState, is_empty, parse_number

DEFAULT_BLOCK_SIZE = 10


class PixelateFilter(BaseFilter):
    """Fill each square block with the colour of its top-left pixel.

    Blocks on the right and bottom edges are clipped to the frame.
    """

    name = "Pixelate"

    def __init__(self) -> None:
        self._block_size = DEFAULT_BLOCK_SIZE

    def configure(self, params: dict) -> None:
        """Apply user-supplied parameters."""
        super().configure(params)
        self._block_size = parse_number(params, "block_size", self._block_size, int, minimum=1)

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        if is_empty(pixels):
            return pixels
        h, w = pixels.shape[:2]
        size = self._block_size
        samples = pixels[::size, ::size]
        blocks = np.repeat(np.repeat(samples, size, axis=0), size, axis=1)
        pixels[...] = blocks[:h, :w]
        return pixels
