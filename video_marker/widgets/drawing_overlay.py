# video_marker/widgets/drawing_overlay.py
from __future__ import annotations

from typing import Optional, Tuple

from PyQt5.QtCore import QEvent, QObject, QPointF, Qt
from PyQt5.QtGui import QColor, QPainter, QPen
from PyQt5.QtWidgets import QWidget

from ..session import StreamSession
from ..strokes import line_pairs, scale_stroke


class DrawingOverlay(QWidget):
    """
    Transparent freehand layer placed as a child of a QVideoWidget.

    Mouse press/move/release feed the session's stroke capture; painting connects
    consecutive points and never crosses a BREAK. Strokes are stored in the pixel
    space of the canvas size at the first pen-down after a clear, and rescaled
    when the tile is resized.
    """

    def __init__(self, session: StreamSession, parent: QWidget,
                 color: str = "#FF0000", width: float = 3.0):
        super().__init__(parent)
        self._session = session
        self._pen = QPen(QColor(color))
        self._pen.setWidthF(float(width))
        self._pen.setCapStyle(Qt.RoundCap)
        self._canvas_size: Optional[Tuple[float, float]] = None

        self.setAttribute(Qt.WA_NoSystemBackground, True)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setCursor(Qt.CrossCursor)

        # Follow the host's geometry
        parent.installEventFilter(self)
        self.setGeometry(parent.rect())
        self.raise_()

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        if obj is self.parent() and event.type() == QEvent.Resize:
            self.setGeometry(self.parent().rect())
        return super().eventFilter(obj, event)

    def clear(self) -> None:
        self._session.clear_drawing()
        self._canvas_size = None
        self.update()

    # ---------------- Pointer input ----------------

    def _to_canvas(self, pos) -> Tuple[float, float]:
        # Map current widget coords back to the capture canvas.
        x, y = float(pos.x()), float(pos.y())
        if self._canvas_size is None:
            return x, y
        cw, ch = self._canvas_size
        w, h = float(self.width()), float(self.height())
        if w <= 0 or h <= 0:
            return x, y
        return x * cw / w, y * ch / h

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        if self._canvas_size is None or not self._session.strokes:
            self._canvas_size = (float(self.width()), float(self.height()))
        x, y = self._to_canvas(event.pos())
        self._session.pointer_down(x, y)
        self.update()

    def mouseMoveEvent(self, event) -> None:
        if not (event.buttons() & Qt.LeftButton):
            return super().mouseMoveEvent(event)
        x, y = self._to_canvas(event.pos())
        self._session.pointer_move(x, y)
        self.update()

    def mouseReleaseEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        self._session.pointer_up()
        self.update()

    # ---------------- Painting ----------------

    def paintEvent(self, _event) -> None:
        if self._session.disposed:
            return
        stroke = self._session.strokes
        if not stroke:
            return
        if self._canvas_size is not None:
            stroke = scale_stroke(stroke, self._canvas_size, (self.width(), self.height()))

        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.Antialiasing, True)
            painter.setPen(self._pen)
            for a, b in line_pairs(stroke):
                painter.drawLine(QPointF(a.x, a.y), QPointF(b.x, b.y))
        finally:
            painter.end()
