"""Render loop driving capture, filtering and presentation once per tick."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from webcam_filters.core.frame_buffer import DisplaySurface, FrameBuffer
from webcam_filters.core.frame_source import DeviceLostError, FrameSource, FrameSourceError
from webcam_filters.core.selection import ActiveSelection
from webcam_filters.filters import FilterId, FilterRegistry

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 16
FPS_SMOOTHING = 0.1


class LoopState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    DISPOSING = "disposing"


@dataclass
class RenderStats:
    """Counters for the current run, reset on every start."""

    ticks: int = 0
    frames_presented: int = 0
    skipped_ticks: int = 0
    fps: float = 0.0
    resolution: tuple[int, int] = (0, 0)
    _last_present: float | None = None

    def record_present(self, now: float) -> None:
        self.frames_presented += 1
        if self._last_present is not None:
            dt = now - self._last_present
            if dt > 0:
                instant = 1.0 / dt
                if self.fps == 0.0:
                    self.fps = instant
                else:
                    self.fps += FPS_SMOOTHING * (instant - self.fps)
        self._last_present = now


class TickScheduler(ABC):
    """Calls a tick callback at a fixed interval until stopped."""

    @abstractmethod
    def start(self, callback: Callable[[], object], interval_ms: int) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Cancel every tick that has not started yet."""

    @property
    @abstractmethod
    def active(self) -> bool:
        ...


class BlockingScheduler(TickScheduler):
    """Runs ticks in the calling thread, paced with ``time.sleep``.

    ``start`` only arms the scheduler; ``run`` executes the ticks.
    """

    def __init__(self, paced: bool = True) -> None:
        self._paced = paced
        self._callback: Callable[[], object] | None = None
        self._interval = DEFAULT_TICK_INTERVAL_MS / 1000.0
        self._active = False

    def start(self, callback: Callable[[], object], interval_ms: int) -> None:
        self._callback = callback
        self._interval = interval_ms / 1000.0
        self._active = True

    def stop(self) -> None:
        self._active = False
        self._callback = None

    @property
    def active(self) -> bool:
        return self._active

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until stopped or *max_ticks* reached. Returns ticks run."""
        count = 0
        while self._active and (max_ticks is None or count < max_ticks):
            started = time.monotonic()
            self._callback()
            count += 1
            if self._paced:
                remaining = self._interval - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        return count


class RenderLoop:
    """Orchestrates FrameSource -> FrameBuffer -> filter -> surface.

    States go ``IDLE -> INITIALIZING -> RUNNING -> DISPOSING -> IDLE``.
    Everything runs on the scheduler's thread; a tick owns the buffer and
    the filter state for its whole duration.
    """

    def __init__(
        self,
        source: FrameSource,
        surface: DisplaySurface,
        scheduler: TickScheduler,
        filter_id: FilterId | str = FilterId.IDENTITY,
        filter_params: dict[FilterId, dict] | None = None,
        interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
        clock: Callable[[], float] = time.monotonic,
        on_error: Callable[[FrameSourceError], None] | None = None,
    ) -> None:
        self._source = source
        self._surface = surface
        self._scheduler = scheduler
        self._selection = ActiveSelection(filter_id, filter_params)
        self._interval_ms = interval_ms
        self._clock = clock
        self._on_error = on_error

        self._state = LoopState.IDLE
        self._cancelled = True
        self._buffer = FrameBuffer()
        self._pending_filter: FilterId | None = None
        self._start_time = 0.0
        self.stats = RenderStats()
        self.last_error: FrameSourceError | None = None

    # ── Properties ────────────────────────────────────────────────────

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def buffer(self) -> FrameBuffer:
        return self._buffer

    @property
    def selection(self) -> ActiveSelection:
        return self._selection

    @property
    def active_filter_id(self) -> FilterId:
        """Id of the filter the next tick will run."""
        if self._pending_filter is not None:
            return self._pending_filter
        return self._selection.filter_id

    @property
    def elapsed(self) -> float:
        """Seconds on the animation clock shared by all filters."""
        return self._clock() - self._start_time

    # ── Lifecycle ─────────────────────────────────────────────────────

    def start(self) -> None:
        """Acquire the frame source and begin ticking.

        Raises:
            FrameSourceError: The source could not be acquired; the loop
                stays idle.
        """
        if self._state is LoopState.RUNNING:
            return
        self._state = LoopState.INITIALIZING
        try:
            self._source.open()
        except FrameSourceError as e:
            logger.error("Cannot start render loop: %s", e)
            self.last_error = e
            self._state = LoopState.IDLE
            raise

        self._buffer = FrameBuffer()
        self._surface.set_frame_size(0, 0)
        self._selection.reset_state()
        self.stats = RenderStats()
        self.last_error = None
        self._start_time = self._clock()
        self._cancelled = False
        self._state = LoopState.RUNNING
        self._scheduler.start(self.tick, self._interval_ms)
        logger.info("Render loop running with filter '%s'", self.active_filter_id.value)

    def dispose(self) -> None:
        """Cancel ticking, release the source, then free the buffers."""
        if self._state is not LoopState.RUNNING:
            return
        self._state = LoopState.DISPOSING
        self._cancelled = True
        self._scheduler.stop()
        self._source.close()
        self._buffer.free()
        self._selection.reset_state()
        self._state = LoopState.IDLE
        logger.info(
            "Render loop disposed after %d frames (%d skipped ticks)",
            self.stats.frames_presented,
            self.stats.skipped_ticks,
        )

    def restart(self) -> None:
        """Release everything and acquire the source again."""
        self.dispose()
        self.start()

    # ── Filter selection ──────────────────────────────────────────────

    def set_active_filter(self, filter_id: FilterId | str) -> FilterId:
        """Queue a filter switch for the next tick and return the previous id.

        Raises:
            KeyError: *filter_id* is not a registered filter.
        """
        descriptor = FilterRegistry.get(filter_id)
        previous = self.active_filter_id
        self._pending_filter = descriptor.filter_id
        return previous

    # ── Tick ──────────────────────────────────────────────────────────

    def tick(self) -> bool:
        """Run one iteration. Returns True if a frame was presented."""
        if self._cancelled or self._state is not LoopState.RUNNING:
            return False
        self.stats.ticks += 1

        if self._pending_filter is not None:
            if self._pending_filter is not self._selection.filter_id:
                self._selection.switch(self._pending_filter)
            self._pending_filter = None

        try:
            frame = self._source.read()
        except DeviceLostError as e:
            self._fail(e)
            return False
        if frame is None:
            self.stats.skipped_ticks += 1
            return False

        if not self._buffer.matches(frame.width, frame.height):
            logger.info("Frame size changed to %dx%d", frame.width, frame.height)
            self._buffer.resize(frame.width, frame.height)
            self._surface.set_frame_size(frame.width, frame.height)
            self.stats.resolution = (frame.width, frame.height)

        self._buffer.load(frame.pixels)
        output = self._selection.apply(self._buffer.pixels, self.elapsed)
        self._buffer.commit(output)
        self._surface.present(self._buffer.pixels)
        self.stats.record_present(self._clock())
        return True

    def _fail(self, error: FrameSourceError) -> None:
        logger.error("Frame source failed: %s", error)
        self.last_error = error
        self.dispose()
        if self._on_error is not None:
            self._on_error(error)
        else:
            raise error
