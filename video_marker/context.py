# video_marker/context.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .domain import AppConfig, MarkedFrame
from .errors import EmptyLedgerError
from .export import ExportEncoder
from .ledger import MarkLedger
from .persistence import export_ledger
from .playback import HandleFactory, PlaybackHandle, snap_speed
from .session import LoadReport, SessionRegistry, StreamLoader, StreamSession

logger = logging.getLogger(__name__)


class AnalyzerContext:
    """
    Explicit session context: one SessionRegistry and the MarkLedger it feeds.

    Marks emitted by any registered stream are appended to the ledger, so the
    ledger outlives individual streams. Passed by reference to the presentation layer.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config: AppConfig = config or AppConfig()
        self.registry = SessionRegistry()
        self.ledger = MarkLedger()
        self.registry.add_mark_listener(self.ledger.append)
        self._loaders: List[StreamLoader] = []
        self._closed = False

    # ---------------- Streams ----------------

    def add_stream(self, name: str, handle: PlaybackHandle) -> StreamSession:
        session = self.registry.add_stream(name, handle)
        speed = snap_speed(self.config.default_speed)
        if speed != session.speed:
            session.set_speed(speed)
        return session

    def load(
        self,
        sources: Sequence[Tuple[str, str]],
        handle_factory: HandleFactory,
        on_loaded: Optional[Callable[[StreamSession], None]] = None,
        on_done: Optional[Callable[[LoadReport], None]] = None,
    ) -> StreamLoader:
        def loaded(session: StreamSession) -> None:
            speed = snap_speed(self.config.default_speed)
            if speed != session.speed:
                session.set_speed(speed)
            if on_loaded is not None:
                on_loaded(session)

        def done(report: LoadReport) -> None:
            if loader in self._loaders:
                self._loaders.remove(loader)
            if on_done is not None:
                on_done(report)

        loader = StreamLoader(self.registry, handle_factory, on_loaded=loaded, on_done=done)
        self._loaders.append(loader)
        loader.start(sources)
        return loader

    def play_all(self) -> None:
        self.registry.play_all()

    def pause_all(self) -> None:
        self.registry.pause_all()

    def mark(self, stream_id: int) -> MarkedFrame:
        session = self.registry.get(stream_id)
        if session is None:
            raise KeyError(f"No stream with id {stream_id}")
        return session.mark()

    # ---------------- Marks / export ----------------

    def has_marks(self) -> bool:
        return not self.ledger.is_empty()

    def clear_marks(self) -> None:
        self.ledger.clear()

    def encode_export(self) -> bytes:
        return ExportEncoder(self.config.csv_quoting).encode(self.ledger)

    def export(self) -> str:
        """Write the CSV export and return its path. Raises EmptyLedgerError / EncodingError."""
        if self.ledger.is_empty():
            raise EmptyLedgerError("No frames marked to export.")
        return export_ledger(self.ledger, self.config)

    # ---------------- Teardown ----------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Closing context with %d stream(s)", len(self.registry))
        self.registry.dispose_all()
