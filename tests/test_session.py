import pytest

from video_marker.domain import MarkedFrame
from video_marker.errors import DisposedError, InitializationError
from video_marker.session import SessionRegistry, StreamSession
from video_marker.strokes import decode_payload, stroke_segments

from conftest import FakeHandle, ready_handle


def test_ids_follow_add_order_and_survive_teardown(registry):
    sessions = [registry.add_stream(f"v{i}.mp4", ready_handle(f"v{i}")) for i in range(4)]
    assert [s.id for s in sessions] == [1, 2, 3, 4]
    registry.dispose_all()
    assert registry.ids() == [1, 2, 3, 4]
    assert registry.get(3) is sessions[2]


def test_create_requires_initialized_handle():
    with pytest.raises(InitializationError):
        StreamSession.create(1, "a.mp4", FakeHandle("a"))


def test_play_pause_are_noops_in_same_state():
    h = ready_handle("a")
    s = StreamSession.create(1, "a.mp4", h)
    s.play()
    s.play()
    s.pause()
    s.pause()
    assert h.calls == ["a:play", "a:pause"]


def test_toggle():
    h = ready_handle("a")
    s = StreamSession.create(1, "a.mp4", h)
    s.toggle()
    assert s.is_playing()
    s.toggle()
    assert not s.is_playing()


def test_set_speed_is_forwarded_as_given():
    h = ready_handle("a")
    s = StreamSession.create(1, "a.mp4", h)
    s.set_speed(5.0)
    assert s.speed == 5.0
    assert h.speed == 5.0


def test_mark_twice_reads_position_each_time():
    h = ready_handle("a", position=1.0)
    s = StreamSession.create(1, "a.mp4", h)
    s.pointer_down(1, 1)
    s.pointer_move(2, 2)
    s.pointer_up()
    first = s.mark()
    h.position = 4.5
    second = s.mark()
    assert first.annotation_payload == second.annotation_payload
    assert (first.time_seconds, second.time_seconds) == (1.0, 4.5)
    # strokes survive marking
    assert len(s.strokes) == 3


def test_clear_then_mark_yields_empty_payload():
    s = StreamSession.create(1, "a.mp4", ready_handle("a"))
    s.pointer_down(1, 1)
    s.pointer_move(2, 2)
    s.pointer_up()
    s.clear_drawing()
    frame = s.mark()
    assert frame.annotation_payload == "[]"
    assert stroke_segments(decode_payload(frame.annotation_payload)) == []


def test_mark_emits_event():
    s = StreamSession.create(2, "b.mp4", ready_handle("b", position=3.0))
    seen = []
    s.add_mark_listener(seen.append)
    frame = s.mark()
    assert seen == [frame]
    assert frame == MarkedFrame(stream_id=2, time_seconds=3.0, annotation_payload="[]")


def test_failing_listener_does_not_starve_others():
    s = StreamSession.create(1, "a.mp4", ready_handle("a"))
    seen = []

    def boom(_frame):
        raise RuntimeError("listener down")

    s.add_mark_listener(boom)
    s.add_mark_listener(seen.append)
    with pytest.raises(RuntimeError):
        s.mark()
    assert len(seen) == 1


def test_dispose_releases_once_and_blocks_everything():
    h = ready_handle("a")
    s = StreamSession.create(1, "a.mp4", h)
    s.dispose()
    s.dispose()
    assert h.release_count == 1
    for op in (s.play, s.pause, s.mark, s.clear_drawing, s.pointer_up, s.position_seconds):
        with pytest.raises(DisposedError):
            op()
    with pytest.raises(DisposedError):
        s.set_speed(1.0)
    with pytest.raises(DisposedError):
        s.pointer_down(0, 0)


def test_play_all_is_best_effort_in_registry_order(registry):
    calls = []
    for i in (1, 2, 3):
        registry.add_stream(
            f"v{i}.mp4",
            ready_handle(f"v{i}", calls=calls, fail_on="play" if i == 2 else None),
        )
    with pytest.raises(RuntimeError):
        registry.play_all()
    assert calls == ["v1:play", "v2:play", "v3:play"]


def test_pause_all(registry):
    handles = [ready_handle(f"v{i}") for i in range(3)]
    for i, h in enumerate(handles):
        registry.add_stream(f"v{i}.mp4", h)
    registry.play_all()
    registry.pause_all()
    assert not any(h.playing for h in handles)


def test_dispose_all_releases_every_handle(registry):
    handles = [ready_handle(f"v{i}") for i in range(3)]
    for i, h in enumerate(handles):
        registry.add_stream(f"v{i}.mp4", h)
    registry.dispose_all()
    assert [h.release_count for h in handles] == [1, 1, 1]
    with pytest.raises(DisposedError):
        registry.add_stream("late.mp4", ready_handle("late"))


def test_registry_forwards_marks(registry):
    seen = []
    registry.add_mark_listener(seen.append)
    a = registry.add_stream("a.mp4", ready_handle("a", position=1.0))
    b = registry.add_stream("b.mp4", ready_handle("b", position=2.0))
    b.mark()
    a.mark()
    assert [f.stream_id for f in seen] == [2, 1]


def test_pause_all_is_best_effort_in_registry_order(registry):
    calls = []
    handles = []
    for i in (1, 2, 3):
        h = ready_handle(f"v{i}", calls=calls, fail_on="pause" if i == 2 else None)
        h.playing = True
        handles.append(h)
        registry.add_stream(f"v{i}.mp4", h)
    with pytest.raises(RuntimeError):
        registry.pause_all()
    assert calls == ["v1:pause", "v2:pause", "v3:pause"]
    assert not handles[0].playing
    assert not handles[2].playing


def test_dispose_all_releases_others_when_one_release_fails(registry):
    handles = [ready_handle(f"v{i}") for i in (1, 2, 3)]

    def broken_release():
        handles[1].release_count += 1
        raise RuntimeError("decoder stuck")

    handles[1].release = broken_release
    for i, h in enumerate(handles, 1):
        registry.add_stream(f"v{i}.mp4", h)
    with pytest.raises(RuntimeError):
        registry.dispose_all()
    assert [h.release_count for h in handles] == [1, 1, 1]
    assert all(s.disposed for s in registry)
    # a second teardown does not release anything again
    registry.dispose_all()
    assert [h.release_count for h in handles] == [1, 1, 1]
