import os
import sys

import cv2
import numpy as np
import pytest

from webcam_filters.core import frame_source
from webcam_filters.core.frame_source import (
    DeviceLostError,
    DeviceUnavailableError,
    Frame,
    FrameSourceError,
    PermissionDeniedError,
    VideoFileSource,
    WebcamSource,
)


class FakeCapture:
    """Replays scripted (ok, image) read results in place of cv2.VideoCapture."""

    def __init__(self, results=()):
        self.results = list(results)
        self.released = False

    def isOpened(self):
        return not self.released

    def set(self, prop, value):
        return True

    def get(self, prop):
        return 0.0

    def read(self):
        return self.results.pop(0) if self.results else (False, None)

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    def install(results=()):
        capture = FakeCapture(results)
        monkeypatch.setattr(frame_source, "_check_device_node", lambda device: None)
        monkeypatch.setattr(cv2, "VideoCapture", lambda device: capture)
        return capture

    return install


class TestFrame:
    def test_from_bgr_converts_to_rgba(self):
        image = np.zeros((2, 3, 3), dtype=np.uint8)
        image[..., 0] = 10  # blue
        image[..., 2] = 200  # red
        frame = Frame.from_bgr(image, timestamp=0.5, frame_number=7)

        assert (frame.width, frame.height) == (3, 2)
        assert frame.pixels.shape == (2, 3, 4)
        assert frame.pixels[0, 0].tolist() == [200, 0, 10, 255]
        assert frame.frame_number == 7


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(DeviceUnavailableError, FrameSourceError)
        assert issubclass(DeviceLostError, FrameSourceError)


class TestWebcamSource:
    def test_missing_device_node_is_unavailable(self):
        source = WebcamSource("/dev/video-does-not-exist")
        with pytest.raises(DeviceUnavailableError):
            source.open()
        assert not source.is_open

    def test_read_before_open_returns_none(self):
        assert WebcamSource(0).read() is None

    def test_close_without_open(self):
        WebcamSource(0).close()

    @pytest.mark.skipif(not os.path.exists("/dev/null"), reason="needs a /dev node")
    def test_unreadable_device_node_is_permission_denied(self, monkeypatch):
        monkeypatch.setattr(os, "access", lambda path, mode: False)
        source = WebcamSource("/dev/null")
        with pytest.raises(PermissionDeniedError):
            source.open()
        assert not source.is_open

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="V4L2 device nodes are Linux only")
    def test_missing_device_index_is_unavailable(self):
        with pytest.raises(DeviceUnavailableError):
            WebcamSource(987).open()

    def test_single_missed_read_is_no_frame(self, fake_capture):
        bgr = np.zeros((6, 8, 3), dtype=np.uint8)
        fake_capture([(False, None), (True, bgr)])
        with WebcamSource(0) as source:
            assert source.read() is None
            frame = source.read()
        assert (frame.width, frame.height) == (8, 6)
        assert frame.frame_number == 0

    def test_consecutive_missed_reads_lose_the_device(self, fake_capture):
        fake_capture()
        with WebcamSource(0) as source:
            for _ in range(29):
                assert source.read() is None
            with pytest.raises(DeviceLostError):
                source.read()

    def test_good_read_resets_the_miss_counter(self, fake_capture):
        bgr = np.zeros((4, 4, 3), dtype=np.uint8)
        miss = (False, None)
        fake_capture([miss, miss, (True, bgr), miss, miss])
        with WebcamSource(0, max_missed_reads=3) as source:
            results = [source.read() for _ in range(5)]
            assert [r is None for r in results] == [True, True, False, True, True]
            with pytest.raises(DeviceLostError):
                source.read()

    def test_close_releases_capture(self, fake_capture):
        capture = fake_capture()
        source = WebcamSource(0)
        source.open()
        assert source.is_open
        source.close()
        assert capture.released
        assert not source.is_open


class TestVideoFileSource:
    def test_missing_file_is_unavailable(self, tmp_path):
        with pytest.raises(DeviceUnavailableError):
            VideoFileSource(tmp_path / "missing.mp4").open()

    def test_reads_rgba_frames(self, video_file):
        with VideoFileSource(video_file) as source:
            assert source.is_open
            frame = source.read()
        assert (frame.width, frame.height) == (32, 24)
        assert frame.pixels.dtype == np.uint8
        assert np.all(frame.pixels[..., 3] == 255)
        assert frame.frame_number == 0
        assert not source.is_open

    def test_loops_at_end_of_file(self, video_file):
        with VideoFileSource(video_file, loop=True) as source:
            frames = [source.read() for _ in range(5)]
        assert all(f is not None for f in frames)
        assert [f.frame_number for f in frames] == [0, 1, 2, 3, 4]

    def test_end_of_file_without_loop_is_device_lost(self, video_file):
        with VideoFileSource(video_file, loop=False) as source:
            for _ in range(3):
                assert source.read() is not None
            with pytest.raises(DeviceLostError):
                source.read()

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="file permissions are not enforced for root",
    )
    def test_unreadable_file_is_permission_denied(self, video_file):
        video_file.chmod(0o000)
        try:
            with pytest.raises(PermissionDeniedError):
                VideoFileSource(video_file).open()
        finally:
            video_file.chmod(0o644)
