"""Preview canvas widget presenting rendered frames."""

import cv2
import numpy as np
from PySide6.QtCore import Qt
from PySide6.QtGui import QFontMetrics, QImage, QPainter
from PySide6.QtWidgets import QWidget


class PreviewCanvas(QWidget):
    """Widget acting as the render loop's display surface.

    The surface keeps the frame's native resolution; painting letterboxes
    it into whatever size the widget currently has.
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._frame_w: int = 0
        self._frame_h: int = 0
        self._frame: np.ndarray | None = None
        self._caption: str = ""
        self.setMinimumSize(320, 240)
        self.setFocusPolicy(Qt.StrongFocus)

    # ── Display surface ───────────────────────────────────────────────

    def set_frame_size(self, width: int, height: int) -> None:
        """Adopt a new frame resolution. The widget geometry is unaffected."""
        self._frame_w = width
        self._frame_h = height
        self._frame = None

    def present(self, pixels: np.ndarray) -> None:
        h, w = pixels.shape[:2]
        if (w, h) != (self._frame_w, self._frame_h):
            raise ValueError(
                f"Presented frame {w}x{h} does not match surface {self._frame_w}x{self._frame_h}"
            )
        self._frame = pixels.copy() if w > 0 and h > 0 else None
        self.update()

    @property
    def frame_size(self) -> tuple[int, int]:
        return (self._frame_w, self._frame_h)

    @property
    def frame(self) -> np.ndarray | None:
        """Copy of the last presented frame."""
        return self._frame

    def set_caption(self, caption: str) -> None:
        self._caption = caption
        self.update()

    # ── Paint ─────────────────────────────────────────────────────────

    def paintEvent(self, event: object) -> None:
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.GlobalColor.black)
        if self._frame is None:
            painter.setPen(Qt.GlobalColor.white)
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Waiting for camera…")
            return

        boxed = letterbox(self._frame, self.width(), self.height())
        h, w = boxed.shape[:2]
        qimg = QImage(boxed.data, w, h, w * 4, QImage.Format.Format_RGBA8888).copy()
        painter.drawImage(0, 0, qimg)

        if not self._caption:
            return
        font = painter.font()
        px = max(10, self.height() // 24)
        font.setPixelSize(px)
        fm = QFontMetrics(font)
        margin = 8
        while fm.horizontalAdvance(self._caption) > self.width() - margin and px > 8:
            px -= 1
            font.setPixelSize(px)
            fm = QFontMetrics(font)
        painter.setFont(font)
        flags = Qt.AlignmentFlag.AlignTop | Qt.AlignmentFlag.AlignHCenter
        rect = self.rect()
        painter.setPen(Qt.GlobalColor.black)
        for dx, dy in [(1, 0), (-1, 0), (0, 1), (0, -1)]:
            painter.drawText(rect.adjusted(dx, dy, dx, dy), flags, self._caption)
        painter.setPen(Qt.GlobalColor.white)
        painter.drawText(rect, flags, self._caption)


def letterbox(frame: np.ndarray, target_w: int, target_h: int) -> np.ndarray:
    """Resize *frame* into ``target_w`` x ``target_h`` keeping aspect ratio.

    Bars are opaque black. Returns *frame* unchanged for empty sizes.
    """
    h, w = frame.shape[:2]
    if w <= 0 or h <= 0 or target_w <= 0 or target_h <= 0:
        return frame
    scale = min(target_w / w, target_h / h)
    new_w = max(1, int(w * scale))
    new_h = max(1, int(h * scale))
    resized = cv2.resize(frame, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    pad_w = target_w - new_w
    pad_h = target_h - new_h
    top = pad_h // 2
    bottom = pad_h - top
    left = pad_w // 2
    right = pad_w - left
    return cv2.copyMakeBorder(
        resized, top, bottom, left, right, cv2.BORDER_CONSTANT, value=(0, 0, 0, 255)
    )
