"""ASCII art filter quantizing cell brightness to glyphs."""

import math

import cv2
import numpy as np

from .base import BaseFilter, FilterState, is_empty, parse_number

# Ordered dark -> light
GLYPH_RAMP = "@#$%=+*^·. "
DEFAULT_CELL_SIZE = 10

_FONT = cv2.FONT_HERSHEY_PLAIN


def _render_glyph(char: str, size: int) -> np.ndarray:
    """Rasterise one ramp character into a ``size`` x ``size`` boolean mask.

    Hershey fonts are ASCII-only, so the middle dot is drawn as a filled disc.
    """
    canvas = np.zeros((size, size), dtype=np.uint8)
    if char == " ":
        return canvas.astype(bool)
    if char == "·":
        radius = max(1, size // 10)
        cv2.circle(canvas, (size // 2, size // 2), radius, 255, -1)
        return canvas.astype(bool)

    scale = cv2.getFontScaleFromHeight(_FONT, max(1, size - 2), 1)
    (text_w, _), _ = cv2.getTextSize(char, _FONT, scale, 1)
    x = max(0, (size - text_w) // 2)
    cv2.putText(canvas, char, (x, size - 1), _FONT, scale, 255, 1, cv2.LINE_8)
    return canvas.astype(bool)


def build_glyph_atlas(size: int) -> np.ndarray:
    """Masks for every ramp character, shape ``(len(GLYPH_RAMP), size, size)``."""
    return np.stack([_render_glyph(c, size) for c in GLYPH_RAMP])


def cell_luminance(pixels: np.ndarray, cell_size: int) -> np.ndarray:
    """Mean of ``(R + G + B) / 3`` over each cell, clipped at the frame edges."""
    h, w = pixels.shape[:2]
    luminance = pixels[..., :3].astype(np.float64).mean(axis=2)
    row_starts = np.arange(0, h, cell_size)
    col_starts = np.arange(0, w, cell_size)
    sums = np.add.reduceat(np.add.reduceat(luminance, row_starts, axis=0), col_starts, axis=1)
    rows = np.minimum(row_starts + cell_size, h) - row_starts
    cols = np.minimum(col_starts + cell_size, w) - col_starts
    return sums / np.outer(rows, cols)


def ramp_indices(luminance: np.ndarray) -> np.ndarray:
    """Map luminance in [0, 255] to indices into ``GLYPH_RAMP``."""
    top = len(GLYPH_RAMP) - 1
    indices = np.floor(luminance / 255.0 * top).astype(np.intp)
    return np.clip(indices, 0, top)


class AsciiArtFilter(BaseFilter):
    """Replace the frame with white glyphs on black, one per cell.

    Colour is discarded; only the mean cell brightness picks the glyph.
    """

    name = "ASCII Art"

    def __init__(self) -> None:
        self._cell_size = DEFAULT_CELL_SIZE
        self._atlas = build_glyph_atlas(self._cell_size)

    def configure(self, params: dict) -> None:
        """Apply user-supplied parameters."""
        super().configure(params)
        cell_size = parse_number(params, "cell_size", self._cell_size, int, minimum=4)
        if cell_size != self._cell_size:
            self._cell_size = cell_size
            self._atlas = build_glyph_atlas(cell_size)

    def glyph_indices(self, pixels: np.ndarray) -> np.ndarray:
        """Ramp index chosen for every cell, shape ``(rows, cols)``."""
        return ramp_indices(cell_luminance(pixels, self._cell_size))

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        if is_empty(pixels):
            return pixels
        h, w = pixels.shape[:2]
        size = self._cell_size
        indices = self.glyph_indices(pixels)

        rows, cols = grid_shape(w, h, size)
        tiles = self._atlas[indices]  # (rows, cols, size, size)
        mask = tiles.transpose(0, 2, 1, 3).reshape(rows * size, cols * size)[:h, :w]

        pixels[..., :3] = 0
        pixels[..., 3] = 255
        pixels[mask, :3] = 255
        return pixels


def grid_shape(width: int, height: int, cell_size: int = DEFAULT_CELL_SIZE) -> tuple[int, int]:
    """Number of (rows, cols) cells covering a frame."""
    return math.ceil(height / cell_size), math.ceil(width / cell_size)
