# video_marker/playback.py
from __future__ import annotations

from typing import Callable, Optional, Protocol

from .domain import MAX_SPEED, MIN_SPEED, SPEED_STEP


# Continuation for PlaybackHandle.initialize: None on success, the error otherwise.
InitCallback = Callable[[Optional[BaseException]], None]


class PlaybackHandle(Protocol):
    """
    Per-stream control surface provided by the playback engine.

    initialize() completes asynchronously: the engine calls on_done exactly once,
    with None when the stream is playable or with the failure otherwise.
    release() frees the underlying decoder/player and is called exactly once.
    """

    def initialize(self, on_done: InitCallback) -> None: ...

    def is_initialized(self) -> bool: ...
    def play(self) -> None: ...

    def pause(self) -> None: ...

    def set_playback_speed(self, speed: float) -> None: ...

    def current_position_seconds(self) -> float: ...

    def aspect_ratio(self) -> float: ...

    def is_playing(self) -> bool: ...

    def release(self) -> None: ...


# Factory used by file intake: (display name, source) -> handle (not yet initialized).
HandleFactory = Callable[[str, str], PlaybackHandle]


def clamp_speed(speed: float) -> float:
    return max(MIN_SPEED, min(float(speed), MAX_SPEED))


def snap_speed(speed: float) -> float:
    """Clamp to the supported range and round to the 0.1 step of the speed slider."""
    steps = round(clamp_speed(speed) / SPEED_STEP)
    return round(steps * SPEED_STEP, 1)


def speed_to_slider(speed: float) -> int:
    """Speed -> integer slider position (1..20)."""
    return int(round(snap_speed(speed) / SPEED_STEP))


def slider_to_speed(value: int) -> float:
    return snap_speed(int(value) * SPEED_STEP)
