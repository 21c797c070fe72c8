# video_marker/session.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from .domain import DEFAULT_SPEED, MarkedFrame, Stroke
from .errors import DisposedError, InitializationError
from .playback import HandleFactory, PlaybackHandle
from .strokes import StrokeCapture, encode_payload

logger = logging.getLogger(__name__)

MarkListener = Callable[[MarkedFrame], None]


def _notify(listeners: Sequence[MarkListener], frame: MarkedFrame) -> None:
    """Deliver frame to every listener; re-raise the first failure once all have run."""
    first_error: Optional[BaseException] = None
    for fn in list(listeners):
        try:
            fn(frame)
        except Exception as e:
            logger.exception("Mark listener %r failed", fn)
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise first_error


# -----------------------------
# StreamSession
# -----------------------------

class StreamSession:
    """
    One loaded video: its id, display name, playback handle and drawing.

    The session never owns the ledger. mark() returns the MarkedFrame and emits it
    to mark listeners (the registry subscribes when it creates the session).
    """

    def __init__(self, stream_id: int, name: str, handle: PlaybackHandle):
        self._id = int(stream_id)
        self._name = str(name)
        self._handle = handle
        self._capture = StrokeCapture()
        self._speed = DEFAULT_SPEED
        self._disposed = False
        self._mark_listeners: List[MarkListener] = []

    @classmethod
    def create(cls, stream_id: int, name: str, handle: PlaybackHandle) -> "StreamSession":
        """Build a session around an already-initialized handle."""
        if not handle.is_initialized():
            raise InitializationError(f"Playback handle for '{name}' is not initialized", name=name)
        return cls(stream_id, name, handle)

    # ---------------- Identity ----------------

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_alive(self) -> None:
        if self._disposed:
            raise DisposedError(f"Stream {self._id} ('{self._name}') has been disposed")

    # ---------------- Events ----------------

    def add_mark_listener(self, fn: MarkListener) -> None:
        self._mark_listeners.append(fn)

    # ---------------- Playback ----------------

    @property
    def handle(self) -> PlaybackHandle:
        self._check_alive()
        return self._handle

    def is_playing(self) -> bool:
        self._check_alive()
        return bool(self._handle.is_playing())

    def play(self) -> None:
        self._check_alive()
        if not self._handle.is_playing():
            self._handle.play()

    def pause(self) -> None:
        self._check_alive()
        if self._handle.is_playing():
            self._handle.pause()

    def toggle(self) -> None:
        if self.is_playing():
            self.pause()
        else:
            self.play()

    @property
    def speed(self) -> float:
        return self._speed

    def set_speed(self, speed: float) -> None:
        """
        Store and forward speed as given. Range enforcement ([0.1, 2.0]) belongs to
        the caller, see playback.snap_speed.
        """
        self._check_alive()
        self._speed = float(speed)
        self._handle.set_playback_speed(self._speed)

    def position_seconds(self) -> float:
        self._check_alive()
        return max(0.0, float(self._handle.current_position_seconds()))

    def aspect_ratio(self) -> float:
        self._check_alive()
        return float(self._handle.aspect_ratio())

    # ---------------- Drawing ----------------

    @property
    def strokes(self) -> Stroke:
        self._check_alive()
        return self._capture.items()

    def pointer_down(self, x: float, y: float) -> None:
        self._check_alive()
        self._capture.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self._check_alive()
        self._capture.pointer_move(x, y)

    def pointer_up(self) -> None:
        self._check_alive()
        self._capture.pointer_up()

    def clear_drawing(self) -> None:
        self._check_alive()
        self._capture.clear()

    # ---------------- Marking ----------------

    def mark(self) -> MarkedFrame:
        """
        Snapshot the current position and drawing. Strokes are kept, so the same
        stream can be marked again with the same or an evolving drawing.
        """
        self._check_alive()
        frame = MarkedFrame(
            stream_id=self._id,
            time_seconds=self.position_seconds(),
            annotation_payload=encode_payload(self._capture.items()),
        )
        _notify(self._mark_listeners, frame)
        return frame

    # ---------------- Lifecycle ----------------

    def dispose(self) -> None:
        """Release the handle. Safe to call more than once; only the first call releases."""
        if self._disposed:
            return
        self._disposed = True
        self._mark_listeners.clear()
        self._capture.clear()
        self._handle.release()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "live"
        return f"StreamSession(id={self._id}, name={self._name!r}, {state})"


# -----------------------------
# SessionRegistry
# -----------------------------

class SessionRegistry:
    """
    Ordered collection of StreamSessions.

    Ids are assigned as len(registry) + 1 and never reused; there is no removal
    of a single stream.
    """

    def __init__(self) -> None:
        self._sessions: List[StreamSession] = []
        self._mark_listeners: List[MarkListener] = []
        self._torn_down = False

    # ---------------- Collection ----------------

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[StreamSession]:
        return iter(list(self._sessions))

    def size(self) -> int:
        return len(self._sessions)

    def sessions(self) -> List[StreamSession]:
        return list(self._sessions)

    def ids(self) -> List[int]:
        return [s.id for s in self._sessions]

    def get(self, stream_id: int) -> Optional[StreamSession]:
        for s in self._sessions:
            if s.id == int(stream_id):
                return s
        return None

    # ---------------- Events ----------------

    def add_mark_listener(self, fn: MarkListener) -> None:
        self._mark_listeners.append(fn)

    def _on_session_marked(self, frame: MarkedFrame) -> None:
        _notify(self._mark_listeners, frame)

    # ---------------- Lifecycle ----------------

    def add_stream(self, name: str, handle: PlaybackHandle) -> StreamSession:
        if self._torn_down:
            raise DisposedError("Registry has been torn down")
        session = StreamSession.create(len(self._sessions) + 1, name, handle)
        session.add_mark_listener(self._on_session_marked)
        self._sessions.append(session)
        logger.info("Registered stream %d (%s)", session.id, session.name)
        return session

    def _for_each(self, action: str, fn: Callable[[StreamSession], None]) -> None:
        """Run fn on every session in registry order; re-raise the first failure at the end."""
        first_error: Optional[BaseException] = None
        for s in list(self._sessions):
            try:
                fn(s)
            except Exception as e:
                logger.warning("%s failed for stream %d (%s): %s", action, s.id, s.name, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def play_all(self) -> None:
        self._for_each("play", lambda s: s.play())

    def pause_all(self) -> None:
        self._for_each("pause", lambda s: s.pause())

    def dispose_all(self) -> None:
        self._torn_down = True
        self._for_each("dispose", lambda s: s.dispose())

    @property
    def torn_down(self) -> bool:
        return self._torn_down


# -----------------------------
# File intake (batch loading)
# -----------------------------

@dataclass
class LoadReport:
    loaded: List[StreamSession] = field(default_factory=list)
    failed: List[Tuple[str, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class StreamLoader:
    """
    Loads (name, source) pairs one after another.

    The next file starts only after the previous handle finished initializing, so
    stream ids follow selection order even when initialization is asynchronous.
    A failing file is skipped and its handle (if any) released; the batch goes on.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        handle_factory: HandleFactory,
        on_loaded: Optional[Callable[[StreamSession], None]] = None,
        on_done: Optional[Callable[[LoadReport], None]] = None,
    ):
        self._registry = registry
        self._factory = handle_factory
        self._on_loaded = on_loaded
        self._on_done = on_done
        self._pending: List[Tuple[str, str]] = []
        self._report = LoadReport()
        self._running = False
        self._finished = False

    @property
    def report(self) -> LoadReport:
        return self._report

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, sources: Sequence[Tuple[str, str]]) -> None:
        if self._running:
            raise RuntimeError("StreamLoader.start() called twice")
        self._running = True
        self._pending = [(str(n), str(s)) for n, s in (sources or [])]
        self._next()

    def _next(self) -> None:
        if not self._pending:
            self._finished = True
            logger.info(
                "Batch load finished: %d loaded, %d skipped",
                len(self._report.loaded), len(self._report.failed),
            )
            if self._on_done is not None:
                self._on_done(self._report)
            return

        name, source = self._pending.pop(0)
        try:
            handle = self._factory(name, source)
        except Exception as e:
            self._skip(name, None, e)
            return

        done = [False]

        def on_initialized(error: Optional[BaseException]) -> None:
            if done[0]:
                return
            done[0] = True
            self._on_initialized(name, handle, error)

        try:
            handle.initialize(on_initialized)
        except Exception as e:
            if done[0]:
                raise
            done[0] = True
            self._skip(name, handle, e)

    def _on_initialized(self, name: str, handle: PlaybackHandle, error: Optional[BaseException]) -> None:
        if error is not None:
            self._skip(name, handle, error)
            return
        try:
            session = self._registry.add_stream(name, handle)
        except (InitializationError, DisposedError) as e:
            self._skip(name, handle, e)
            return
        self._report.loaded.append(session)
        try:
            if self._on_loaded is not None:
                self._on_loaded(session)
        except Exception:
            logger.exception("on_loaded callback failed for stream %d (%s)", session.id, name)
        finally:
            self._next()

    def _skip(self, name: str, handle: Optional[PlaybackHandle], error: BaseException) -> None:
        if not isinstance(error, InitializationError):
            wrapped = InitializationError(str(error) or type(error).__name__, name=name)
            wrapped.__cause__ = error
            error = wrapped
        logger.warning("Skipping '%s': %s", name, error)
        if handle is not None:
            try:
                handle.release()
            except Exception:
                logger.exception("Failed to release handle for '%s'", name)
        self._report.failed.append((name, error))
        self._next()


def load_streams(
    registry: SessionRegistry,
    sources: Sequence[Tuple[str, str]],
    handle_factory: HandleFactory,
    on_loaded: Optional[Callable[[StreamSession], None]] = None,
    on_done: Optional[Callable[[LoadReport], None]] = None,
) -> StreamLoader:
    loader = StreamLoader(registry, handle_factory, on_loaded=on_loaded, on_done=on_done)
    loader.start(sources)
    return loader
