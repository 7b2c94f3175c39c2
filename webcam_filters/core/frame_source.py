"""Frame sources feeding the render loop from a camera or a video file."""

import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_MAX_MISSED_READS = 30


class FrameSourceError(Exception):
    """Base class for device-level failures surfaced to the caller."""


class DeviceUnavailableError(FrameSourceError):
    """No capture device (or file) could be opened."""


class PermissionDeniedError(FrameSourceError):
    """The capture device exists but may not be opened by this process."""


class DeviceLostError(FrameSourceError):
    """A previously opened device stopped delivering frames."""


@dataclass
class Frame:
    """One decoded image from a frame source.

    Attributes:
        pixels: RGBA uint8 numpy array of shape (height, width, 4).
        timestamp: Seconds since the source was opened.
        frame_number: Sequential counter starting from 0.
        width: Frame width in pixels.
        height: Frame height in pixels.
    """

    pixels: np.ndarray
    timestamp: float
    frame_number: int
    width: int
    height: int

    @classmethod
    def from_bgr(cls, image: np.ndarray, timestamp: float, frame_number: int) -> "Frame":
        """Build a frame from an OpenCV BGR capture."""
        rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        h, w = rgba.shape[:2]
        return cls(pixels=rgba, timestamp=timestamp, frame_number=frame_number, width=w, height=h)


class FrameSource(ABC):
    """Interface for providing RGBA frames to the render loop.

    ``open`` acquires the device and ``close`` releases it. Sources never
    retry on their own: after a failure the caller closes and re-opens.
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire the device.

        Raises:
            DeviceUnavailableError: Nothing could be opened.
            PermissionDeniedError: Access to the device was refused.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call when not open."""

    @abstractmethod
    def read(self) -> Frame | None:
        """Return the next frame, or None if no frame is ready yet.

        Raises:
            DeviceLostError: The device stopped delivering frames.
        """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True when the source has been opened and not yet closed."""

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _check_device_node(device: int | str) -> None:
    """Map a missing or unreadable V4L2 node to the matching error.

    Only applies where device nodes exist (Linux); elsewhere OpenCV decides.
    """
    if isinstance(device, int):
        if not sys.platform.startswith("linux"):
            return
        node = Path(f"/dev/video{device}")
    elif str(device).startswith("/dev/"):
        node = Path(device)
    else:
        return
    if not node.exists():
        raise DeviceUnavailableError(f"Capture device not found: {node}")
    if not os.access(node, os.R_OK):
        raise PermissionDeniedError(f"Permission denied for capture device: {node}")


class WebcamSource(FrameSource):
    """Live frames from a webcam through cv2.VideoCapture.

    Args:
        device: Device index or a V4L2 device path such as ``"/dev/video0"``.
        width: Requested frame width (None = camera default).
        height: Requested frame height (None = camera default).
        fps: Requested capture rate.
        max_missed_reads: Consecutive failed reads tolerated before the
            device is reported lost.
    """

    def __init__(
        self,
        device: int | str = 0,
        width: int | None = None,
        height: int | None = None,
        fps: float = 30.0,
        max_missed_reads: int = DEFAULT_MAX_MISSED_READS,
    ) -> None:
        self._device = device
        self._req_width = width
        self._req_height = height
        self._fps = fps
        self._max_missed_reads = max_missed_reads
        self._capture: cv2.VideoCapture | None = None
        self._missed_reads = 0
        self._frame_count = 0
        self._start_time = 0.0

    def open(self) -> None:
        if self._capture is not None:
            return
        _check_device_node(self._device)
        cap = cv2.VideoCapture(self._device)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailableError(f"Cannot open capture device: {self._device}")

        if self._req_width is not None:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._req_width)
        if self._req_height is not None:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._req_height)
        cap.set(cv2.CAP_PROP_FPS, self._fps)

        self._capture = cap
        self._missed_reads = 0
        self._frame_count = 0
        self._start_time = time.monotonic()
        logger.info(
            "Webcam opened: device=%s %dx%d @ %.1f fps",
            self._device,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            cap.get(cv2.CAP_PROP_FPS),
        )

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Webcam closed: device=%s", self._device)

    def read(self) -> Frame | None:
        if self._capture is None:
            return None
        ret, image = self._capture.read()
        if not ret or image is None:
            self._missed_reads += 1
            if self._missed_reads >= self._max_missed_reads:
                raise DeviceLostError(
                    f"Capture device {self._device} delivered no frame for "
                    f"{self._missed_reads} consecutive reads"
                )
            return None
        self._missed_reads = 0
        frame = Frame.from_bgr(image, time.monotonic() - self._start_time, self._frame_count)
        self._frame_count += 1
        return frame

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()


class VideoFileSource(FrameSource):
    """Frames decoded from a video file, standing in for a camera.

    Args:
        path: Video file path.
        loop: Rewind at end of file instead of reporting the device lost.
    """

    def __init__(self, path: str | Path, loop: bool = True) -> None:
        self._path = Path(path).resolve()
        self._loop = loop
        self._capture: cv2.VideoCapture | None = None
        self._frame_count = 0
        self._fps = 0.0

    @property
    def fps(self) -> float:
        """Native frame rate of the file, 0.0 if unknown."""
        return self._fps

    def open(self) -> None:
        if self._capture is not None:
            return
        if not self._path.exists():
            raise DeviceUnavailableError(f"Video file not found: {self._path}")
        if not os.access(self._path, os.R_OK):
            raise PermissionDeniedError(f"Permission denied for video file: {self._path}")
        cap = cv2.VideoCapture(str(self._path))
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailableError(f"Cannot open video file: {self._path}")

        fps = cap.get(cv2.CAP_PROP_FPS)
        self._fps = fps if fps > 0 and np.isfinite(fps) else 0.0
        self._capture = cap
        self._frame_count = 0
        logger.info("Video file opened: %s (%.2f fps)", self._path.name, self._fps)

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Video file closed: %s", self._path.name)

    def read(self) -> Frame | None:
        if self._capture is None:
            return None
        ret, image = self._capture.read()
        if not ret or image is None:
            if not self._loop:
                raise DeviceLostError(f"End of video file: {self._path}")
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, image = self._capture.read()
            if not ret or image is None:
                raise DeviceLostError(f"Cannot decode video file: {self._path}")
        timestamp = self._frame_count / self._fps if self._fps > 0 else 0.0
        frame = Frame.from_bgr(image, timestamp, self._frame_count)
        self._frame_count += 1
        return frame

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()
