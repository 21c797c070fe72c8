import os

from video_marker.media_import import collect_sources, ext_lower, validate_local_video_path


def test_ext_lower():
    assert ext_lower("/a/B.MP4") == ".mp4"


def test_validate(tmp_path):
    ok_file = tmp_path / "clip.mov"
    ok_file.write_bytes(b"")
    txt = tmp_path / "notes.txt"
    txt.write_text("x")
    assert validate_local_video_path(str(ok_file)) == (True, "OK")
    assert validate_local_video_path(str(txt))[0] is False
    assert validate_local_video_path(str(tmp_path / "missing.mp4"))[0] is False
    assert validate_local_video_path(str(tmp_path))[0] is False
    assert validate_local_video_path("")[0] is False


def test_collect_sources_keeps_order(tmp_path):
    names = ["b.mp4", "a.mp4", "skip.txt", "c.webm"]
    for n in names:
        (tmp_path / n).write_bytes(b"")
    accepted, rejected = collect_sources([str(tmp_path / n) for n in names])
    assert [n for n, _ in accepted] == ["b.mp4", "a.mp4", "c.webm"]
    assert all(os.path.isabs(p) for _, p in accepted)
    assert [os.path.basename(p) for p, _ in rejected] == ["skip.txt"]
