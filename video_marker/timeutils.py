# video_marker/timeutils.py
from __future__ import annotations


def ms_to_seconds(ms: int) -> float:
    if ms is None:
        ms = 0
    return max(0, int(ms)) / 1000.0


def seconds_to_ms(sec: float) -> int:
    if sec is None:
        sec = 0.0
    return int(round(max(0.0, float(sec)) * 1000.0))


def ms_to_time_str(ms: int) -> str:
    if ms is None:
        ms = 0
    ms = max(0, int(ms))
    s = ms // 1000
    m = s // 60
    s = s % 60
    return f"{m:02d}:{s:02d}"


def position_label(position_ms: int, duration_ms: int) -> str:
    return f"{ms_to_time_str(position_ms)} / {ms_to_time_str(duration_ms)}"
