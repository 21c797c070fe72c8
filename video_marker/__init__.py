# video_marker/__init__.py
'''
video_marker/
    __init__.py
    __main__.py

    app.py                 # QApplication + logging + boot
    main_window.py         # QMainWindow layout + wiring

    domain.py              # dataclasses: Point2D, BREAK, MarkedFrame, AppConfig
    errors.py              # InitializationError, DisposedError, EmptyLedgerError, EncodingError
    strokes.py             # pointer capture, payload encode/decode, segments, rescaling
    playback.py            # PlaybackHandle protocol, speed helpers
    session.py             # StreamSession, SessionRegistry, batch StreamLoader
    ledger.py              # MarkLedger (append-only)
    export.py              # ExportEncoder (CSV exchange format)
    context.py             # AnalyzerContext: registry + ledger wiring
    persistence.py         # config.json load/save, atomic export sink
    media_import.py        # file intake validation
    timeutils.py           # ms/seconds helpers, time labels

    widgets/
      qt_playback.py       # QMediaPlayer-backed PlaybackHandle
      drawing_overlay.py   # freehand layer over a QVideoWidget
      video_grid.py        # StreamTile per stream + StreamGrid
      marks_table.py       # marked frames list
'''

from __future__ import annotations

__all__ = ["__version__", "run_app"]

__version__ = "0.1.0"


def run_app(*args, **kwargs) -> int:
    # Imported lazily so the session model stays usable without a Qt install.
    from .app import run_app as _run_app
    return _run_app(*args, **kwargs)
