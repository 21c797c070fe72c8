# video_marker/widgets/marks_table.py
from __future__ import annotations

from typing import List, Optional, Sequence

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QTableWidget,
    QTableWidgetItem,
    QWidget,
)

from ..domain import MarkedFrame
from ..ledger import summarize_mark


TABLE_COLUMNS = ["#", "Mark", "Annotations"]


class MarksTable(QTableWidget):
    """
    Read-only list of marked frames in ledger order.

    The ledger is append-only, so rows are never edited here; set_frames() just
    redraws whatever the ledger currently holds.
    """

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(0, len(TABLE_COLUMNS), parent)

        self.setHorizontalHeaderLabels(TABLE_COLUMNS)
        self.horizontalHeader().setStretchLastSection(True)
        self.horizontalHeader().setDefaultSectionSize(180)
        self.verticalHeader().setVisible(False)

        self.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.setSelectionMode(QAbstractItemView.SingleSelection)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)

        self._frames: List[MarkedFrame] = []

    def set_frames(self, frames: Sequence[MarkedFrame]) -> None:
        self._frames = list(frames or [])
        self.refresh()

    def refresh(self) -> None:
        self.setRowCount(len(self._frames))
        for row, frame in enumerate(self._frames):
            title, drawn = summarize_mark(frame)
            cells = [str(row + 1), title, "Yes" if drawn else "None"]
            for col, text in enumerate(cells):
                item = QTableWidgetItem(text)
                item.setFlags(item.flags() & ~Qt.ItemIsEditable)
                if col == 2:
                    item.setToolTip(frame.annotation_payload[:500])
                self.setItem(row, col, item)
        if self._frames:
            self.scrollToBottom()
