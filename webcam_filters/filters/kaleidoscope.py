"""Animated radial-symmetry filter."""

import math

import cv2
import numpy as np

from .base import BaseFilter, FilterState, is_empty

BASE_SEGMENTS = 8.0
SEGMENT_SWING = 2.0
ROTATION_SPEED = 0.2
SCALE_SWING = 0.2


def segment_count(elapsed: float) -> float:
    """Real-valued number of segments at time *elapsed*."""
    return BASE_SEGMENTS + SEGMENT_SWING * math.sin(elapsed)


def _translate(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def _rotate(theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _scale(k: float) -> np.ndarray:
    return np.array([[k, 0.0, 0.0], [0.0, k, 0.0], [0.0, 0.0, 1.0]])


def segment_transforms(width: int, height: int, elapsed: float) -> list[np.ndarray]:
    """Return the 2x3 source-to-output matrices, one per drawn segment.

    Segment ``i`` is drawn under ``T(c) R(rot) S(scale) R(i * step) T(-c)``
    for every ``i < N(t)``. The step uses the real-valued ``N(t)``.
    """
    segments = segment_count(elapsed)
    step = 2.0 * math.pi / segments
    cx, cy = width / 2.0, height / 2.0
    scale = 1.0 + SCALE_SWING * math.sin(0.5 * elapsed)

    outer = _translate(cx, cy) @ _rotate(ROTATION_SPEED * elapsed) @ _scale(scale)
    matrices = []
    i = 0
    while i < segments:
        m = outer @ _rotate(i * step) @ _translate(-cx, -cy)
        matrices.append(m[:2])
        i += 1
    return matrices


class KaleidoscopeFilter(BaseFilter):
    """Composite rotated copies of the frame around its centre.

    The segment count, global rotation and zoom all oscillate with time.
    """

    name = "Kaleidoscope"

    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        if is_empty(pixels):
            return pixels
        h, w = pixels.shape[:2]
        source = pixels.copy()
        output = np.zeros_like(pixels)

        for m in segment_transforms(w, h, elapsed):
            # BORDER_TRANSPARENT keeps earlier segments where this copy doesn't land
            output = cv2.warpAffine(
                source,
                m,
                (w, h),
                dst=output,
                flags=cv2.INTER_LINEAR,
                borderMode=cv2.BORDER_TRANSPARENT,
            )

        pixels[...] = output
        return pixels
