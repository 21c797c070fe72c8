# video_marker/errors.py
from __future__ import annotations


class VideoMarkerError(Exception):
    """Base class for every error raised by the session model."""


class InitializationError(VideoMarkerError):
    """A selected file could not be turned into a playable handle."""

    def __init__(self, message: str, name: str = ""):
        super().__init__(message)
        self.name = name


class DisposedError(VideoMarkerError, RuntimeError):
    """An operation was attempted on a session whose handle was released."""


class EmptyLedgerError(VideoMarkerError):
    """Export was requested while no frame has been marked."""


class EncodingError(VideoMarkerError):
    """The export sink rejected the encoded bytes."""
