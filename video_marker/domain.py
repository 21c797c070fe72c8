# video_marker/domain.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union


# -----------------------------
# Playback speed
# -----------------------------

MIN_SPEED = 0.1
MAX_SPEED = 2.0
SPEED_STEP = 0.1
DEFAULT_SPEED = 1.0


# -----------------------------
# Stroke primitives
# -----------------------------

@dataclass(frozen=True)
class Point2D:
    """A pointer position in stream-local pixel coordinates."""
    x: float
    y: float

    def to_dict(self) -> Dict:
        return {"x": float(self.x), "y": float(self.y)}

    @staticmethod
    def from_dict(d: Dict) -> "Point2D":
        return Point2D(x=float(d["x"]), y=float(d["y"]))


class _Break:
    """Pen-up sentinel. Points on either side of it are never connected."""

    _instance: Optional["_Break"] = None

    def __new__(cls) -> "_Break":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "BREAK"

    def __reduce__(self):
        return (_Break, ())


BREAK = _Break()

StrokeItem = Union[Point2D, _Break]
Stroke = List[StrokeItem]


def is_break(item: object) -> bool:
    return item is BREAK


# -----------------------------
# Marked frames
# -----------------------------

@dataclass(frozen=True)
class MarkedFrame:
    """
    One mark: the playback position of a stream plus its drawing at that instant.

    annotation_payload is the JSON point list produced by strokes.encode_payload.
    """
    stream_id: int
    time_seconds: float
    annotation_payload: str

    def __post_init__(self) -> None:
        if int(self.stream_id) < 1:
            raise ValueError("stream_id must be >= 1")
        if float(self.time_seconds) < 0:
            raise ValueError("time_seconds must be >= 0")

    def to_dict(self) -> Dict:
        return {
            "video": int(self.stream_id),
            "time": float(self.time_seconds),
            "annotations": self.annotation_payload,
        }

    @staticmethod
    def from_dict(d: Dict) -> "MarkedFrame":
        return MarkedFrame(
            stream_id=int(d["video"]),
            time_seconds=float(d.get("time", 0.0)),
            annotation_payload=str(d.get("annotations", "[]")),
        )


# -----------------------------
# Config payload
# -----------------------------

@dataclass
class AppConfig:
    """
    Stored in <config_dir>/config.json
    """
    export_dir: str = ""          # empty -> system temp dir
    export_filename: str = "frames_export.csv"
    csv_quoting: str = "verbatim"  # "verbatim" | "rfc4180"
    default_speed: float = DEFAULT_SPEED
    pen_color: str = "#FF0000"
    pen_width: float = 3.0
    log_level: str = "INFO"

    def to_dict(self) -> Dict:
        return {
            "export_dir": self.export_dir,
            "export_filename": self.export_filename,
            "csv_quoting": self.csv_quoting,
            "default_speed": float(self.default_speed),
            "pen_color": self.pen_color,
            "pen_width": float(self.pen_width),
            "log_level": self.log_level,
            "config_version": 1,
        }

    @staticmethod
    def from_dict(d: Dict) -> "AppConfig":
        defaults = AppConfig()
        quoting = str(d.get("csv_quoting") or defaults.csv_quoting).strip().lower()
        if quoting not in ("verbatim", "rfc4180"):
            quoting = defaults.csv_quoting
        speed = float(d.get("default_speed", defaults.default_speed))
        speed = max(MIN_SPEED, min(speed, MAX_SPEED))
        return AppConfig(
            export_dir=str(d.get("export_dir") or ""),
            export_filename=str(d.get("export_filename") or defaults.export_filename),
            csv_quoting=quoting,
            default_speed=speed,
            pen_color=str(d.get("pen_color") or defaults.pen_color),
            pen_width=float(d.get("pen_width", defaults.pen_width)),
            log_level=str(d.get("log_level") or defaults.log_level).upper(),
        )
