# video_marker/main_window.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from .context import AnalyzerContext
from .domain import AppConfig
from .errors import EmptyLedgerError, EncodingError
from .media_import import collect_sources, video_file_filter
from .session import LoadReport, StreamSession
from .widgets.marks_table import MarksTable
from .widgets.qt_playback import qt_handle_factory
from .widgets.video_grid import StreamGrid

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[AppConfig] = None):
        super().__init__()
        self.setWindowTitle("Video Marker (Multi-Video Frame Marking)")
        self.resize(1400, 900)

        self.context = AnalyzerContext(config)
        self.context.ledger.add_change_listener(self._on_ledger_changed)

        self._build_ui()
        self._update_enabled_state()

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(6)

        # ===== Top: add/export + global playback =====
        top = QHBoxLayout()
        top.setSpacing(8)
        main_layout.addLayout(top)

        self.btn_add = QPushButton("Add Videos")
        self.btn_add.clicked.connect(self._pick_videos)
        self.btn_play_all = QPushButton("Play All")
        self.btn_play_all.clicked.connect(self._play_all)
        self.btn_pause_all = QPushButton("Pause All")
        self.btn_pause_all.clicked.connect(self._pause_all)
        self.btn_export = QPushButton("Export CSV")
        self.btn_export.clicked.connect(self._export_csv)

        self.status_label = QLabel("No videos loaded")
        self.status_label.setTextInteractionFlags(Qt.TextSelectableByMouse)

        top.addWidget(self.btn_add)
        top.addSpacing(12)
        top.addWidget(self.btn_play_all)
        top.addWidget(self.btn_pause_all)
        top.addStretch()
        top.addWidget(self.status_label)
        top.addSpacing(12)
        top.addWidget(self.btn_export)

        split = QSplitter(Qt.Vertical)
        main_layout.addWidget(split, stretch=1)

        # ===== Middle: video grid =====
        self.grid = StreamGrid(self.context.config)
        self.grid.request_add_videos.connect(self._pick_videos)
        self.grid.mark_failed.connect(self._on_mark_failed)
        split.addWidget(self.grid)

        # ===== Bottom: marked frames =====
        marks_box = QGroupBox("Marked Frames")
        marks_lay = QVBoxLayout(marks_box)
        marks_lay.setContentsMargins(6, 6, 6, 6)
        self.marks_table = MarksTable()
        marks_lay.addWidget(self.marks_table, stretch=1)

        actions = QHBoxLayout()
        self.btn_clear_marks = QPushButton("Clear Marks")
        self.btn_clear_marks.clicked.connect(self._clear_marks)
        actions.addStretch()
        actions.addWidget(self.btn_clear_marks)
        marks_lay.addLayout(actions)

        split.addWidget(marks_box)
        split.setStretchFactor(0, 5)
        split.setStretchFactor(1, 1)

        for w in (self.btn_add, self.btn_play_all, self.btn_pause_all,
                  self.btn_export, self.btn_clear_marks):
            w.setCursor(Qt.PointingHandCursor)

    def _update_enabled_state(self) -> None:
        has_streams = len(self.context.registry) > 0
        has_marks = self.context.has_marks()
        self.btn_play_all.setEnabled(has_streams)
        self.btn_pause_all.setEnabled(has_streams)
        self.btn_clear_marks.setEnabled(has_marks)

        n = len(self.context.registry)
        m = len(self.context.ledger)
        if n == 0:
            self.status_label.setText("No videos loaded")
        else:
            self.status_label.setText(f"{n} video(s), {m} mark(s)")

    # ---------------- Loading ----------------

    def _pick_videos(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Videos", "", video_file_filter())
        if paths:
            self.load_paths(paths)

    def load_paths(self, paths: Sequence[str]) -> None:
        sources, rejected = collect_sources(paths)
        for path, reason in rejected:
            logger.warning("Rejected %s: %s", path, reason)
        if rejected:
            QMessageBox.warning(
                self,
                "Some files were skipped",
                "\n".join(f"{p}: {r}" for p, r in rejected),
            )
        if not sources:
            return
        self.context.load(
            sources,
            qt_handle_factory,
            on_loaded=self._on_stream_loaded,
            on_done=self._on_load_done,
        )

    def _on_stream_loaded(self, session: StreamSession) -> None:
        self.grid.add_session(session)
        self._update_enabled_state()

    def _on_load_done(self, report: LoadReport) -> None:
        self._update_enabled_state()
        if report.failed:
            lines: List[str] = [f"{name}: {err}" for name, err in report.failed]
            QMessageBox.warning(self, "Could not load video", "\n".join(lines))

    # ---------------- Playback ----------------

    def _play_all(self) -> None:
        try:
            self.context.play_all()
        except Exception as e:
            QMessageBox.warning(self, "Play All", f"Some videos could not start:\n{e}")
        self.grid.refresh_play_buttons()

    def _pause_all(self) -> None:
        try:
            self.context.pause_all()
        except Exception as e:
            QMessageBox.warning(self, "Pause All", f"Some videos could not pause:\n{e}")
        self.grid.refresh_play_buttons()

    # ---------------- Marks / export ----------------

    def _on_ledger_changed(self) -> None:
        self.marks_table.set_frames(self.context.ledger.all())
        self._update_enabled_state()

    def _on_mark_failed(self, message: str) -> None:
        QMessageBox.warning(self, "Mark failed", message)

    def _clear_marks(self) -> None:
        if not self.context.has_marks():
            return
        resp = QMessageBox.question(
            self,
            "Clear marks?",
            f"Remove all {len(self.context.ledger)} marked frame(s)?\n\nThis cannot be undone.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if resp != QMessageBox.Yes:
            return
        self.context.clear_marks()

    def _export_csv(self) -> None:
        try:
            path = self.context.export()
        except EmptyLedgerError:
            QMessageBox.information(self, "Export CSV", "No frames marked to export.")
            return
        except EncodingError as e:
            QMessageBox.warning(self, "Export CSV", f"Error exporting: {e}")
            return
        QMessageBox.information(self, "Export CSV", f"Exported {len(self.context.ledger)} mark(s) to:\n{path}")

    # ---------------- Teardown ----------------

    def closeEvent(self, event) -> None:
        try:
            self.context.close()
        except Exception:
            logger.exception("Error while releasing players")
        super().closeEvent(event)
