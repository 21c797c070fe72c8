# video_marker/widgets/video_grid.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QSize, Qt, pyqtSignal
from PyQt5.QtMultimediaWidgets import QVideoWidget
from PyQt5.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QSlider,
    QStackedWidget,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from ..domain import AppConfig, MAX_SPEED, MIN_SPEED, SPEED_STEP
from ..playback import slider_to_speed, speed_to_slider
from ..session import StreamSession
from ..timeutils import position_label
from .drawing_overlay import DrawingOverlay

logger = logging.getLogger(__name__)


class StreamTile(QFrame):
    """
    One grid cell: video + drawing overlay, name, play/pause, scrub bar, speed, Mark.

    The tile only talks to its StreamSession. Marks flow to the ledger through the
    session's mark event, not through the tile.
    """

    # Emitted when mark() raised; payload is the error message
    mark_failed = pyqtSignal(str)

    def __init__(self, session: StreamSession, cfg: Optional[AppConfig] = None,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.session = session
        self._cfg = cfg or AppConfig()
        self._scrubbing = False

        self.setFrameShape(QFrame.StyledPanel)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        self._build_ui()

        handle = session.handle
        # Engine-specific extras (seek, duration, signals) are only wired when present.
        player = getattr(handle, "player", None)
        if hasattr(handle, "set_video_output"):
            handle.set_video_output(self.video)
        if player is not None:
            player.positionChanged.connect(self._on_position_changed)
            player.durationChanged.connect(self._on_duration_changed)
            player.stateChanged.connect(lambda _s: self.update_play_button())
        if hasattr(handle, "prime_first_frame"):
            handle.prime_first_frame()

        self.update_play_button()

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self.video = QVideoWidget()
        self.video.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.video.setAspectRatioMode(Qt.KeepAspectRatio)
        layout.addWidget(self.video, stretch=1)

        self.overlay = DrawingOverlay(
            self.session, self.video,
            color=self._cfg.pen_color, width=self._cfg.pen_width,
        )

        self.btn_clear = QToolButton(self.video)
        self.btn_clear.setText("Clear")
        self.btn_clear.setToolTip("Clear Drawing")
        self.btn_clear.clicked.connect(self._clear_drawing)
        self.btn_clear.move(5, 5)
        self.btn_clear.raise_()

        self.name_label = QLabel(f"{self.session.id}. {self.session.name}")
        self.name_label.setStyleSheet("font-weight: bold; font-size: 11px;")
        self.name_label.setToolTip(self.session.name)
        layout.addWidget(self.name_label)

        row = QHBoxLayout()
        row.setSpacing(4)
        self.btn_play = QPushButton("Play")
        self.btn_play.setFixedWidth(56)
        self.btn_play.clicked.connect(self._toggle_play)
        self.progress = QSlider(Qt.Horizontal)
        self.progress.setRange(0, 0)
        self.progress.sliderPressed.connect(self._on_scrub_pressed)
        self.progress.sliderReleased.connect(self._on_scrub_released)
        self.progress.sliderMoved.connect(self._on_scrub_moved)
        self.time_label = QLabel(position_label(0, 0))
        row.addWidget(self.btn_play)
        row.addWidget(self.progress, stretch=1)
        row.addWidget(self.time_label)
        layout.addLayout(row)

        row2 = QHBoxLayout()
        row2.setSpacing(4)
        row2.addWidget(QLabel("Speed:"))
        self.speed_slider = QSlider(Qt.Horizontal)
        self.speed_slider.setRange(int(round(MIN_SPEED / SPEED_STEP)), int(round(MAX_SPEED / SPEED_STEP)))
        self.speed_slider.setSingleStep(1)
        self.speed_slider.setPageStep(1)
        self.speed_slider.setFixedWidth(100)
        self.speed_slider.setValue(speed_to_slider(self.session.speed))
        self.speed_slider.valueChanged.connect(self._on_speed_changed)
        self.speed_label = QLabel(f"{self.session.speed:.1f}x")
        row2.addWidget(self.speed_slider)
        row2.addWidget(self.speed_label)
        row2.addStretch()
        self.btn_mark = QPushButton("Mark")
        self.btn_mark.clicked.connect(self._mark)
        row2.addWidget(self.btn_mark)
        layout.addLayout(row2)

        for w in (self.btn_play, self.btn_mark, self.btn_clear):
            w.setCursor(Qt.PointingHandCursor)

    def sizeHint(self) -> QSize:
        return QSize(480, 360)

    def minimumSizeHint(self) -> QSize:
        return QSize(240, 200)

    # ---------------- Actions ----------------

    def _toggle_play(self) -> None:
        self.session.toggle()
        self.update_play_button()

    def update_play_button(self) -> None:
        if self.session.disposed:
            return
        self.btn_play.setText("Pause" if self.session.is_playing() else "Play")

    def _clear_drawing(self) -> None:
        self.overlay.clear()

    def _on_speed_changed(self, value: int) -> None:
        speed = slider_to_speed(value)
        self.session.set_speed(speed)
        self.speed_label.setText(f"{speed:.1f}x")

    def _mark(self) -> None:
        try:
            self.session.mark()
        except Exception as e:
            logger.error("Mark failed on stream %d: %s", self.session.id, e)
            self.mark_failed.emit(str(e))

    # ---------------- Scrubbing ----------------

    def _on_scrub_pressed(self) -> None:
        self._scrubbing = True

    def _on_scrub_moved(self, value: int) -> None:
        handle = self.session.handle
        if hasattr(handle, "seek"):
            handle.seek(value / 1000.0)

    def _on_scrub_released(self) -> None:
        self._scrubbing = False
        self._on_scrub_moved(self.progress.value())

    def _on_position_changed(self, pos_ms: int) -> None:
        if not self._scrubbing:
            self.progress.blockSignals(True)
            try:
                self.progress.setValue(int(pos_ms))
            finally:
                self.progress.blockSignals(False)
        self.time_label.setText(position_label(int(pos_ms), self.progress.maximum()))

    def _on_duration_changed(self, dur_ms: int) -> None:
        self.progress.setRange(0, max(0, int(dur_ms)))
        self.time_label.setText(position_label(self.progress.value(), int(dur_ms)))


class StreamGrid(QStackedWidget):
    """
    (0) empty placeholder with an upload button, (1) grid of StreamTiles.

    Tiles are laid out in registry order, two per row.
    """

    request_add_videos = pyqtSignal()
    mark_failed = pyqtSignal(str)

    def __init__(self, cfg: Optional[AppConfig] = None, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._cfg = cfg or AppConfig()
        self._tiles: Dict[int, StreamTile] = {}
        self._order: List[int] = []

        empty = QWidget()
        empty_lay = QVBoxLayout(empty)
        empty_lay.addStretch()
        msg = QLabel("No videos loaded.")
        msg.setAlignment(Qt.AlignCenter)
        btn = QPushButton("Upload Videos")
        btn.setCursor(Qt.PointingHandCursor)
        btn.clicked.connect(self.request_add_videos.emit)
        empty_lay.addWidget(msg)
        empty_lay.addWidget(btn, alignment=Qt.AlignCenter)
        empty_lay.addStretch()

        self._grid_host = QWidget()
        self._grid = QGridLayout(self._grid_host)
        self._grid.setContentsMargins(0, 0, 0, 0)
        self._grid.setSpacing(8)

        self.addWidget(empty)            # index 0
        self.addWidget(self._grid_host)  # index 1
        self.setCurrentIndex(0)

    def _grid_columns_for(self, n_items: int) -> int:
        return 1 if n_items <= 1 else 2

    def add_session(self, session: StreamSession) -> StreamTile:
        tile = StreamTile(session, self._cfg, self._grid_host)
        tile.mark_failed.connect(self.mark_failed.emit)
        self._tiles[session.id] = tile
        self._order.append(session.id)
        self._rebuild_grid()
        return tile

    def tile(self, stream_id: int) -> Optional[StreamTile]:
        return self._tiles.get(stream_id)

    def refresh_play_buttons(self) -> None:
        for tile in self._tiles.values():
            tile.update_play_button()

    def _rebuild_grid(self) -> None:
        while self._grid.count():
            self._grid.takeAt(0)

        n = len(self._order)
        self.setCurrentIndex(1 if n else 0)
        if n == 0:
            return

        cols = self._grid_columns_for(n)
        for i, sid in enumerate(self._order):
            r, c = divmod(i, cols)
            self._grid.addWidget(self._tiles[sid], r, c)
        for col in range(cols):
            self._grid.setColumnStretch(col, 1)
