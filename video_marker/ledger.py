# video_marker/ledger.py
from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Tuple

from .domain import MarkedFrame
from .strokes import decode_payload, has_drawing

logger = logging.getLogger(__name__)


class MarkLedger:
    """
    Append-only history of marks across all streams, in mark order.

    Entries are never reordered or edited; the only removal is clear(). Identical
    marks are kept as distinct entries.
    """

    def __init__(self) -> None:
        self._frames: List[MarkedFrame] = []
        self._change_listeners: List[Callable[[], None]] = []

    def add_change_listener(self, fn: Callable[[], None]) -> None:
        self._change_listeners.append(fn)

    def _changed(self) -> None:
        for fn in list(self._change_listeners):
            fn()

    def append(self, frame: MarkedFrame) -> None:
        if not isinstance(frame, MarkedFrame):
            raise TypeError(f"MarkLedger only accepts MarkedFrame, got {type(frame).__name__}")
        self._frames.append(frame)
        logger.info("Marked stream %d @ %.2fs (#%d)", frame.stream_id, frame.time_seconds, len(self._frames))
        self._changed()

    def is_empty(self) -> bool:
        return not self._frames

    def all(self) -> Tuple[MarkedFrame, ...]:
        return tuple(self._frames)

    def clear(self) -> None:
        if not self._frames:
            return
        self._frames = []
        logger.info("Mark ledger cleared")
        self._changed()

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[MarkedFrame]:
        return iter(tuple(self._frames))

    def __getitem__(self, index: int) -> MarkedFrame:
        return self._frames[index]


def summarize_mark(frame: MarkedFrame) -> Tuple[str, bool]:
    """("Video N @ T.TTs", whether the mark carries a visible drawing)."""
    title = f"Video {frame.stream_id} @ {frame.time_seconds:.2f}s"
    try:
        drawn = has_drawing(decode_payload(frame.annotation_payload))
    except ValueError:
        drawn = False
    return title, drawn
