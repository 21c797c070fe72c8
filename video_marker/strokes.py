# video_marker/strokes.py
from __future__ import annotations

import json
from typing import Iterable, List, Optional, Sequence, Tuple

from .domain import BREAK, Point2D, Stroke, StrokeItem, is_break


# -----------------------------
# Pointer capture
# -----------------------------

class StrokeCapture:
    """
    Turns pointer-drag events into one stroke list for a single stream.

    pointer_down -> pointer_move* -> pointer_up appends one pen-down segment
    followed by BREAK. The next pointer_down starts a new segment in the same
    list, so earlier segments stay visible until clear() is called. Starting a
    new drag never resets the list.

    Coordinates are stored as given; clamping to the video rect is left to the
    renderer.
    """

    def __init__(self) -> None:
        self._items: Stroke = []
        self._drawing = False

    @property
    def drawing(self) -> bool:
        return self._drawing

    def pointer_down(self, x: float, y: float) -> None:
        if self._drawing:
            # Missed pointer-up (e.g. focus lost mid-drag): close the open segment.
            self._items.append(BREAK)
        self._drawing = True
        self._items.append(Point2D(float(x), float(y)))

    def pointer_move(self, x: float, y: float) -> None:
        if not self._drawing:
            return
        self._items.append(Point2D(float(x), float(y)))

    def pointer_up(self) -> None:
        if not self._drawing:
            return
        self._drawing = False
        self._items.append(BREAK)

    def clear(self) -> None:
        self._items = []
        self._drawing = False

    def items(self) -> Stroke:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


# -----------------------------
# Payload encode/decode
# -----------------------------

def encode_payload(stroke: Iterable[StrokeItem]) -> str:
    """
    Serialize a stroke as a compact JSON array: {"x":..,"y":..} per point, null per BREAK.

    Example: [{"x":1.0,"y":2.0},{"x":3.0,"y":4.0},null]
    """
    out: List[Optional[dict]] = []
    for item in stroke:
        out.append(None if is_break(item) else item.to_dict())
    return json.dumps(out, separators=(",", ":"), ensure_ascii=False)


def decode_payload(text: str) -> Stroke:
    """Inverse of encode_payload. Raises ValueError on malformed input."""
    try:
        raw = json.loads(text or "[]")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid annotation payload: {e}") from e
    if not isinstance(raw, list):
        raise ValueError("Annotation payload must be a JSON array")

    stroke: Stroke = []
    for entry in raw:
        if entry is None:
            stroke.append(BREAK)
            continue
        try:
            stroke.append(Point2D.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid point in annotation payload: {entry!r}") from e
    return stroke


# -----------------------------
# Geometry helpers
# -----------------------------

def stroke_segments(stroke: Sequence[StrokeItem]) -> List[List[Point2D]]:
    """
    Split a stroke into drawable polylines.

    Only runs of two or more consecutive points produce line segments, so a lone
    point and adjacent BREAKs draw nothing.
    """
    segments: List[List[Point2D]] = []
    run: List[Point2D] = []
    for item in stroke:
        if is_break(item):
            if len(run) >= 2:
                segments.append(run)
            run = []
        else:
            run.append(item)
    if len(run) >= 2:
        segments.append(run)
    return segments


def line_pairs(stroke: Sequence[StrokeItem]) -> List[Tuple[Point2D, Point2D]]:
    """Consecutive point pairs to connect with a line (what the overlay paints)."""
    pairs: List[Tuple[Point2D, Point2D]] = []
    for a, b in zip(stroke, stroke[1:]):
        if not is_break(a) and not is_break(b):
            pairs.append((a, b))
    return pairs


def has_drawing(stroke: Sequence[StrokeItem]) -> bool:
    return bool(line_pairs(stroke))


def scale_stroke(
    stroke: Sequence[StrokeItem],
    from_size: Tuple[float, float],
    to_size: Tuple[float, float],
) -> Stroke:
    """
    Rescale pixel coordinates captured on a canvas of from_size onto to_size.

    Degenerate sizes return an unscaled copy.
    """
    fw, fh = float(from_size[0]), float(from_size[1])
    tw, th = float(to_size[0]), float(to_size[1])
    if fw <= 0 or fh <= 0 or tw <= 0 or th <= 0:
        return list(stroke)

    sx = tw / fw
    sy = th / fh
    out: Stroke = []
    for item in stroke:
        if is_break(item):
            out.append(BREAK)
        else:
            out.append(Point2D(item.x * sx, item.y * sy))
    return out
