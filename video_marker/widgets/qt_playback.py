# video_marker/widgets/qt_playback.py
from __future__ import annotations

import logging
from typing import Optional

from PyQt5.QtCore import QObject, QSize, QUrl
from PyQt5.QtMultimedia import QMediaContent, QMediaPlayer

from ..errors import InitializationError
from ..playback import InitCallback

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 16.0 / 9.0


class QtPlaybackHandle(QObject):
    """
    PlaybackHandle backed by a QMediaPlayer.

    initialize() sets the media and reports back once Qt says the media is loaded
    (or invalid). The video output is attached later by the tile that shows it.
    """

    def __init__(self, name: str, path: str, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.name = name
        self.path = path
        self.player = QMediaPlayer(None, QMediaPlayer.VideoSurface)
        self._on_done: Optional[InitCallback] = None
        self._initialized = False
        self._released = False

    # ---------------- Initialization ----------------

    def initialize(self, on_done: InitCallback) -> None:
        self._on_done = on_done
        self.player.mediaStatusChanged.connect(self._on_media_status)
        self.player.error.connect(self._on_error)
        # Default volumes to 0 so N streams don't play N soundtracks at once.
        self.player.setVolume(0)
        self.player.setMedia(QMediaContent(QUrl.fromLocalFile(self.path)))

    def is_initialized(self) -> bool:
        return self._initialized and not self._released

    def _finish(self, error: Optional[BaseException]) -> None:
        cb = self._on_done
        self._on_done = None
        if cb is None:
            return
        if error is None:
            self._initialized = True
        cb(error)

    def _on_media_status(self, status) -> None:
        if status in (QMediaPlayer.LoadedMedia, QMediaPlayer.BufferedMedia):
            self._finish(None)
        elif status == QMediaPlayer.InvalidMedia:
            msg = self.player.errorString() or "unsupported or corrupt media"
            self._finish(InitializationError(f"Cannot play '{self.name}': {msg}", name=self.name))

    def _on_error(self, *_args) -> None:
        msg = self.player.errorString() or "media error"
        if self._on_done is not None:
            self._finish(InitializationError(f"Cannot play '{self.name}': {msg}", name=self.name))
        else:
            logger.warning("Playback error on '%s': %s", self.name, msg)

    # ---------------- Output ----------------

    def set_video_output(self, video_widget) -> None:
        self.player.setVideoOutput(video_widget)

    def prime_first_frame(self) -> None:
        """Show the first frame without starting playback."""
        self.player.setPosition(0)
        self.player.play()
        self.player.pause()

    # ---------------- Control surface ----------------

    def play(self) -> None:
        self.player.play()

    def pause(self) -> None:
        self.player.pause()

    def is_playing(self) -> bool:
        return self.player.state() == QMediaPlayer.PlayingState

    def set_playback_speed(self, speed: float) -> None:
        self.player.setPlaybackRate(float(speed))

    def current_position_seconds(self) -> float:
        return max(0, int(self.player.position() or 0)) / 1000.0

    def seek(self, seconds: float) -> None:
        self.player.setPosition(int(round(max(0.0, float(seconds)) * 1000.0)))

    def aspect_ratio(self) -> float:
        res = self.player.metaData("Resolution")
        if isinstance(res, QSize) and res.width() > 0 and res.height() > 0:
            return float(res.width()) / float(res.height())
        return DEFAULT_ASPECT_RATIO

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._on_done = None
        try:
            self.player.stop()
            self.player.setMedia(QMediaContent())
        finally:
            self.player.deleteLater()
        logger.debug("Released player for '%s'", self.name)


def qt_handle_factory(name: str, path: str) -> QtPlaybackHandle:
    return QtPlaybackHandle(name, path)
