from __future__ import annotations

from typing import List, Optional

import pytest

from video_marker.context import AnalyzerContext
from video_marker.errors import InitializationError
from video_marker.session import SessionRegistry


class FakeHandle:
    """Scripted PlaybackHandle: records calls, reports a settable position."""

    def __init__(self, name: str = "", position: float = 0.0, fail_init: bool = False,
                 defer_init: bool = False, fail_on: Optional[str] = None,
                 calls: Optional[List[str]] = None):
        self.name = name
        self.position = position
        self.fail_init = fail_init
        self.defer_init = defer_init
        self.fail_on = fail_on
        self.calls: List[str] = calls if calls is not None else []
        self.playing = False
        self.speed = 1.0
        self.initialized = False
        self.release_count = 0
        self._pending = None

    def _record(self, op: str) -> None:
        self.calls.append(f"{self.name}:{op}")
        if self.fail_on == op:
            raise RuntimeError(f"{op} failed on {self.name}")

    def initialize(self, on_done) -> None:
        if self.defer_init:
            self._pending = on_done
            return
        self._complete(on_done)

    def complete_init(self) -> None:
        cb, self._pending = self._pending, None
        self._complete(cb)

    def _complete(self, on_done) -> None:
        if self.fail_init:
            on_done(InitializationError(f"cannot decode {self.name}", name=self.name))
        else:
            self.initialized = True
            on_done(None)

    def is_initialized(self) -> bool:
        return self.initialized

    def play(self) -> None:
        self._record("play")
        self.playing = True

    def pause(self) -> None:
        self._record("pause")
        self.playing = False

    def is_playing(self) -> bool:
        return self.playing

    def set_playback_speed(self, speed: float) -> None:
        self._record("speed")
        self.speed = speed

    def current_position_seconds(self) -> float:
        return self.position

    def aspect_ratio(self) -> float:
        return 16.0 / 9.0

    def release(self) -> None:
        self.calls.append(f"{self.name}:release")
        self.release_count += 1


def ready_handle(name: str = "", **kwargs) -> FakeHandle:
    h = FakeHandle(name, **kwargs)
    h.initialized = True
    return h


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def context(tmp_path) -> AnalyzerContext:
    from video_marker.domain import AppConfig
    return AnalyzerContext(AppConfig(export_dir=str(tmp_path)))
