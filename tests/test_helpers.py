import pytest

from video_marker.playback import clamp_speed, slider_to_speed, snap_speed, speed_to_slider
from video_marker.timeutils import ms_to_seconds, ms_to_time_str, position_label, seconds_to_ms


@pytest.mark.parametrize("given,expected", [
    (0.0, 0.1),
    (0.14, 0.1),
    (0.16, 0.2),
    (1.0, 1.0),
    (2.7, 2.0),
])
def test_snap_speed(given, expected):
    assert snap_speed(given) == expected


def test_clamp_speed():
    assert clamp_speed(-3) == 0.1
    assert clamp_speed(1.33) == 1.33


def test_slider_mapping():
    assert speed_to_slider(1.0) == 10
    assert slider_to_speed(1) == 0.1
    assert slider_to_speed(20) == 2.0


def test_time_helpers():
    assert ms_to_seconds(12345) == 12.345
    assert ms_to_seconds(-5) == 0.0
    assert seconds_to_ms(2.5) == 2500
    assert ms_to_time_str(61000) == "01:01"
    assert position_label(0, 125000) == "00:00 / 02:05"
