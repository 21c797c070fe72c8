import os

import pytest

from video_marker.domain import AppConfig
from video_marker.errors import EmptyLedgerError

from conftest import FakeHandle, ready_handle


def test_two_stream_scenario_exports_one_row(context):
    a = context.add_stream("a.mp4", ready_handle("a", position=12.345))
    b = context.add_stream("b.mp4", ready_handle("b"))
    assert (a.id, b.id) == (1, 2)

    a.pointer_down(10, 20)
    a.pointer_move(11, 21)
    a.pointer_move(12, 22)
    a.pointer_up()
    a.mark()

    frames = context.ledger.all()
    assert len(frames) == 1
    assert frames[0].stream_id == 1
    assert frames[0].time_seconds == 12.345
    assert frames[0].annotation_payload == (
        '[{"x":10.0,"y":20.0},{"x":11.0,"y":21.0},{"x":12.0,"y":22.0},null]'
    )

    lines = context.encode_export().decode("utf-8").splitlines()
    assert lines == [
        "Video,Time (sec),Annotations",
        '1,12.35,"[{"x":10.0,"y":20.0},{"x":11.0,"y":21.0},{"x":12.0,"y":22.0},null]"',
    ]


def test_marks_are_appended_once_each(context):
    a = context.add_stream("a.mp4", ready_handle("a"))
    returned = a.mark()
    assert context.ledger.all() == (returned,)
    context.mark(1)
    assert len(context.ledger) == 2
    with pytest.raises(KeyError):
        context.mark(9)


def test_marks_outlive_streams(context):
    a = context.add_stream("a.mp4", ready_handle("a"))
    a.mark()
    context.close()
    assert len(context.ledger) == 1


def test_export_writes_file(context, tmp_path):
    context.add_stream("a.mp4", ready_handle("a", position=1.0)).mark()
    path = context.export()
    assert path == os.path.join(str(tmp_path), "frames_export.csv")
    with open(path, "rb") as f:
        assert f.read() == context.encode_export()


def test_export_empty_refused_without_io(context, tmp_path):
    with pytest.raises(EmptyLedgerError):
        context.export()
    assert os.listdir(str(tmp_path)) == []


def test_default_speed_applied(tmp_path):
    from video_marker.context import AnalyzerContext
    ctx = AnalyzerContext(AppConfig(export_dir=str(tmp_path), default_speed=0.5))
    h = ready_handle("a")
    s = ctx.add_stream("a.mp4", h)
    assert s.speed == 0.5
    assert h.speed == 0.5


def test_load_through_context(context):
    loaded = []
    context.load(
        [("a.mp4", "/a"), ("b.mp4", "/b")],
        lambda name, src: FakeHandle(name, fail_init=(name == "b.mp4")),
        on_loaded=lambda s: loaded.append(s.id),
    )
    assert loaded == [1]
    assert context.registry.ids() == [1]


def test_context_load_finishes_when_on_loaded_fails(context):
    done = []

    def on_loaded(_session):
        raise RuntimeError("grid refused tile")

    context.load(
        [("a.mp4", "/a"), ("b.mp4", "/b")],
        lambda name, src: FakeHandle(name),
        on_loaded=on_loaded,
        on_done=done.append,
    )
    assert context.registry.ids() == [1, 2]
    assert len(done) == 1
    assert context._loaders == []


def test_mark_failure_in_ledger_listener_still_records(context):
    a = context.add_stream("a.mp4", ready_handle("a"))

    def broken_view():
        raise RuntimeError("table refresh failed")

    context.ledger.add_change_listener(broken_view)
    with pytest.raises(RuntimeError):
        a.mark()
    assert len(context.ledger) == 1
