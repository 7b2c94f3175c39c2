"""Frame buffer owned by the render loop and the surfaces it presents to."""

import logging
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


class BufferReleasedError(RuntimeError):
    """Raised on any write to a frame buffer after it was freed."""


class DisplaySurface(Protocol):
    """Destination of one rendered frame per tick."""

    def set_frame_size(self, width: int, height: int) -> None:
        ...

    def present(self, pixels: np.ndarray) -> None:
        ...


class FrameBuffer:
    """Owns the current frame's RGBA pixel data and its dimensions.

    ``write_count`` counts every mutation so tests can prove nothing
    touches the buffer after teardown.
    """

    def __init__(self) -> None:
        self._pixels: np.ndarray | None = np.zeros((0, 0, 4), dtype=np.uint8)
        self.write_count = 0

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise BufferReleasedError("Frame buffer has been freed")
        return self._pixels

    @property
    def width(self) -> int:
        return 0 if self._pixels is None else self._pixels.shape[1]

    @property
    def height(self) -> int:
        return 0 if self._pixels is None else self._pixels.shape[0]

    @property
    def released(self) -> bool:
        return self._pixels is None

    def matches(self, width: int, height: int) -> bool:
        return self.width == width and self.height == height

    def resize(self, width: int, height: int) -> None:
        """Reallocate for a new resolution. Contents become black."""
        if self._pixels is None:
            raise BufferReleasedError("Cannot resize a freed frame buffer")
        self._pixels = np.zeros((height, width, 4), dtype=np.uint8)
        self.write_count += 1

    def load(self, pixels: np.ndarray) -> None:
        """Copy a captured frame of matching dimensions into the buffer."""
        target = self.pixels
        if pixels.shape != target.shape:
            raise ValueError(
                f"Frame shape {pixels.shape} does not match buffer shape {target.shape}"
            )
        target[...] = pixels
        self.write_count += 1

    def commit(self, pixels: np.ndarray) -> None:
        """Store a filter's output, copying only if it is a different array."""
        target = self.pixels
        if pixels is not target:
            target[...] = pixels
        self.write_count += 1

    def free(self) -> None:
        self._pixels = None


class OffscreenSurface:
    """Display surface that keeps the last presented frame in memory.

    Used for headless runs and tests.
    """

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.present_count = 0
        self.last_frame: np.ndarray | None = None

    def set_frame_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def present(self, pixels: np.ndarray) -> None:
        h, w = pixels.shape[:2]
        if (w, h) != (self.width, self.height):
            raise ValueError(
                f"Presented frame {w}x{h} does not match surface {self.width}x{self.height}"
            )
        self.last_frame = pixels.copy()
        self.present_count += 1
