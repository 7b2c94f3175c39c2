"""Abstract base class for live webcam filters."""

from abc import ABC, abstractmethod

import numpy as np


class FilterState:
    """Data a stateful filter carries from one frame to the next.

    Owned by the active selection and handed to ``apply`` on every tick.
    A fresh instance is created whenever the active filter changes.
    """

    def __init__(self) -> None:
        self.previous: np.ndarray | None = None

    def matches(self, width: int, height: int) -> bool:
        """True if the carried frame has the given dimensions."""
        if self.previous is None:
            return False
        h, w = self.previous.shape[:2]
        return w == width and h == height

    def reseed(self, pixels: np.ndarray) -> None:
        """Replace the carried frame with a copy of *pixels*."""
        self.previous = pixels.copy()

    def clear(self) -> None:
        self.previous = None


class BaseFilter(ABC):
    """Abstract base class for per-frame pixel filters."""

    name: str = "Base Filter"
    needs_state: bool = False

    def configure(self, params: dict) -> None:
        """Apply user-supplied parameters.

        Args:
            params: Dictionary of parameter names to values.
        """
        pass

    @abstractmethod
    def apply(
        self, pixels: np.ndarray, elapsed: float, state: FilterState | None = None
    ) -> np.ndarray:
        """Transform a frame in place and return it.

        Args:
            pixels: RGBA uint8 numpy array (H, W, 4), modified in place.
            elapsed: Seconds on the shared animation clock.
            state: Carried state for filters with ``needs_state``, else None.

        Returns:
            The same array, holding the filtered frame.
        """
        ...


def is_empty(pixels: np.ndarray) -> bool:
    """True for zero-area frames, which every filter leaves untouched."""
    return pixels.shape[0] == 0 or pixels.shape[1] == 0


def parse_number(params: dict, key: str, default, cast=float, minimum=None):
    """Read a numeric parameter, coercing CLI strings.

    Raises:
        ValueError: If the value cannot be converted or is below *minimum*.
    """
    if key not in params:
        return default
    value = cast(params[key])
    if minimum is not None and value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value
