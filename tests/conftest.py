import cv2
import numpy as np
import pytest

from webcam_filters.core.frame_buffer import OffscreenSurface
from webcam_filters.core.frame_source import DeviceLostError, Frame, FrameSource
from webcam_filters.core.render_loop import TickScheduler


def random_rgba(width, height, seed=0):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return pixels


def solid_rgba(width, height, rgb):
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return pixels


class ScriptedSource(FrameSource):
    """Frame source replaying a script of pixel arrays, None and exceptions.

    Once the script is exhausted the last frame is repeated.
    """

    def __init__(self, script=None, open_error=None, events=None):
        self.script = list(script or [])
        self.open_error = open_error
        self.events = events if events is not None else []
        self.open_calls = 0
        self.close_calls = 0
        self._open = False
        self._last = None
        self._count = 0

    def open(self):
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._open = True
        self.events.append("source.open")

    def close(self):
        self.close_calls += 1
        self._open = False
        self.events.append("source.close")

    def read(self):
        if not self._open:
            return None
        item = self.script.pop(0) if self.script else self._last
        if isinstance(item, Exception):
            raise item
        if item is None:
            return None
        self._last = item
        h, w = item.shape[:2]
        frame = Frame(pixels=item.copy(), timestamp=self._count / 30.0, frame_number=self._count, width=w, height=h)
        self._count += 1
        return frame

    @property
    def is_open(self):
        return self._open


class ManualScheduler(TickScheduler):
    """Scheduler that only ticks when the test calls ``fire``."""

    def __init__(self, events=None):
        self.events = events if events is not None else []
        self.callback = None
        self.interval_ms = None

    def start(self, callback, interval_ms):
        self.callback = callback
        self.interval_ms = interval_ms
        self.events.append("scheduler.start")

    def stop(self):
        self.callback = None
        self.events.append("scheduler.stop")

    @property
    def active(self):
        return self.callback is not None

    def fire(self, times=1):
        results = []
        for _ in range(times):
            if self.callback is None:
                break
            results.append(self.callback())
        return results


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def make_random():
    return random_rgba


@pytest.fixture
def make_solid():
    return solid_rgba


@pytest.fixture
def events():
    return []


@pytest.fixture
def scheduler(events):
    return ManualScheduler(events)


@pytest.fixture
def surface():
    return OffscreenSurface()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted_source(events):
    def factory(script=None, open_error=None):
        return ScriptedSource(script, open_error=open_error, events=events)

    return factory


@pytest.fixture
def device_lost():
    return DeviceLostError("camera unplugged")


@pytest.fixture
def video_file(tmp_path):
    """Write a short MJPG clip of solid frames and return its path."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (32, 24))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    for value in (0, 128, 255):
        writer.write(np.full((24, 32, 3), value, dtype=np.uint8))
    writer.release()
    return path
