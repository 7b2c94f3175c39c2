"""Main window for the live webcam filter preview."""

import logging
from collections.abc import Callable

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QActionGroup, QKeyEvent
from PySide6.QtWidgets import QLabel, QMainWindow, QMessageBox, QStatusBar, QWidget

from webcam_filters.core.frame_source import FrameSource, FrameSourceError
from webcam_filters.core.render_loop import DEFAULT_TICK_INTERVAL_MS, RenderLoop, TickScheduler
from webcam_filters.filters import FilterId, FilterRegistry
from webcam_filters.ui.preview_canvas import PreviewCanvas

logger = logging.getLogger(__name__)

_STATUS_INTERVAL_MS = 500


class QtTickScheduler(TickScheduler):
    """Drives ticks from a precise QTimer on the GUI thread."""

    def __init__(self, parent: QWidget | None = None) -> None:
        self._timer = QTimer(parent)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._callback: Callable[[], object] | None = None
        self._timer.timeout.connect(self._on_timeout)

    def start(self, callback: Callable[[], object], interval_ms: int) -> None:
        self._callback = callback
        self._timer.start(interval_ms)

    def stop(self) -> None:
        self._timer.stop()
        self._callback = None

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self) -> None:
        if self._callback is not None:
            self._callback()


class PreviewWindow(QMainWindow):
    """Top-level window: filter menu, preview canvas, status bar."""

    def __init__(
        self,
        source: FrameSource,
        filter_id: FilterId | str = FilterId.IDENTITY,
        filter_params: dict[FilterId, dict] | None = None,
        interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Webcam Filters")
        self.setMinimumSize(640, 480)
        self.resize(1280, 720)

        self._canvas = PreviewCanvas()
        self.setCentralWidget(self._canvas)
        self._scheduler = QtTickScheduler(self)
        self._loop = RenderLoop(
            source=source,
            surface=self._canvas,
            scheduler=self._scheduler,
            filter_id=filter_id,
            filter_params=filter_params,
            interval_ms=interval_ms,
            on_error=self._on_source_error,
        )

        self._setup_menu()
        self._setup_statusbar()
        self._sync_filter_ui(self._loop.active_filter_id)

        self._status_timer = QTimer(self)
        self._status_timer.timeout.connect(self._update_status)
        self._status_timer.start(_STATUS_INTERVAL_MS)

    @property
    def render_loop(self) -> RenderLoop:
        return self._loop

    @property
    def canvas(self) -> PreviewCanvas:
        return self._canvas

    # ── Menu ──────────────────────────────────────────────────────────

    def _setup_menu(self) -> None:
        menu_bar = self.menuBar()

        camera_menu = menu_bar.addMenu("Camera")
        restart_action = QAction("Restart Camera", self)
        restart_action.triggered.connect(self.start)
        camera_menu.addAction(restart_action)

        filter_menu = menu_bar.addMenu("Filter")
        self._filter_group = QActionGroup(self)
        self._filter_group.setExclusive(True)
        self._filter_actions: dict[FilterId, QAction] = {}
        for n, descriptor in enumerate(FilterRegistry.get_descriptors(), start=1):
            action = QAction(f"{n}  {descriptor.name}", self)
            action.setCheckable(True)
            action.triggered.connect(
                lambda checked=False, fid=descriptor.filter_id: self.set_active_filter(fid)
            )
            self._filter_group.addAction(action)
            filter_menu.addAction(action)
            self._filter_actions[descriptor.filter_id] = action

    # ── Status bar ────────────────────────────────────────────────────

    def _setup_statusbar(self) -> None:
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._frame_label = QLabel("Frames: 0")
        self._fps_label = QLabel("FPS: --")
        self._size_label = QLabel("Size: --")
        self._status_bar.addWidget(self._frame_label)
        self._status_bar.addWidget(self._fps_label)
        self._status_bar.addWidget(self._size_label)

    def _update_status(self) -> None:
        stats = self._loop.stats
        self._frame_label.setText(
            f"Frames: {stats.frames_presented} (skipped {stats.skipped_ticks})"
        )
        self._fps_label.setText(f"FPS: {stats.fps:5.1f}" if stats.fps > 0 else "FPS: --")
        w, h = stats.resolution
        self._size_label.setText(f"Size: {w}x{h}" if w and h else "Size: --")

    # ── Render loop control ───────────────────────────────────────────

    def start(self) -> bool:
        """(Re)acquire the camera and start rendering. Returns success."""
        try:
            self._loop.restart()
        except FrameSourceError as e:
            logger.error("Could not start capture: %s", e)
            QMessageBox.warning(self, "Camera unavailable", str(e))
            return False
        return True

    def set_active_filter(self, filter_id: FilterId | str) -> FilterId:
        previous = self._loop.set_active_filter(filter_id)
        self._sync_filter_ui(self._loop.active_filter_id)
        return previous

    def _sync_filter_ui(self, filter_id: FilterId) -> None:
        self._filter_actions[filter_id].setChecked(True)
        self._canvas.set_caption(FilterRegistry.get(filter_id).name)

    def _on_source_error(self, error: FrameSourceError) -> None:
        QMessageBox.warning(self, "Camera lost", str(error))

    # ── Keyboard ──────────────────────────────────────────────────────

    def keyPressEvent(self, event: QKeyEvent) -> None:
        ids = FilterRegistry.get_filter_ids()
        index = event.key() - Qt.Key.Key_1.value
        if 0 <= index < len(ids):
            self.set_active_filter(ids[index])
        else:
            super().keyPressEvent(event)

    # ── Cleanup ───────────────────────────────────────────────────────

    def closeEvent(self, event) -> None:
        self._status_timer.stop()
        self._loop.dispose()
        super().closeEvent(event)
