# video_marker/export.py
from __future__ import annotations

import logging
from typing import Iterable, List

from .domain import MarkedFrame
from .errors import EmptyLedgerError
from .ledger import MarkLedger

logger = logging.getLogger(__name__)


CSV_HEADER = "Video,Time (sec),Annotations"

# "verbatim": payload wrapped in quotes as-is (compatible with the original exports,
#             not RFC 4180 since the JSON payload itself contains quotes).
# "rfc4180":  embedded quotes doubled so any CSV reader recovers the payload.
QUOTING_VERBATIM = "verbatim"
QUOTING_RFC4180 = "rfc4180"
QUOTING_MODES = (QUOTING_VERBATIM, QUOTING_RFC4180)


def format_time(seconds: float) -> str:
    return f"{float(seconds):.2f}"


def _quote(payload: str, quoting: str) -> str:
    if quoting == QUOTING_RFC4180:
        payload = payload.replace('"', '""')
    return f'"{payload}"'


def encode_rows(frames: Iterable[MarkedFrame], quoting: str = QUOTING_VERBATIM) -> List[str]:
    if quoting not in QUOTING_MODES:
        raise ValueError(f"Unknown quoting mode '{quoting}'. Allowed: {list(QUOTING_MODES)}")
    rows = [CSV_HEADER]
    for f in frames:
        rows.append(f"{int(f.stream_id)},{format_time(f.time_seconds)},{_quote(f.annotation_payload, quoting)}")
    return rows


class ExportEncoder:
    """
    Ledger -> CSV bytes (UTF-8, one row per mark in ledger order, "\\n" line ends).

    Output depends only on ledger contents, so equal ledgers encode to equal bytes.
    """

    def __init__(self, quoting: str = QUOTING_VERBATIM):
        if quoting not in QUOTING_MODES:
            raise ValueError(f"Unknown quoting mode '{quoting}'. Allowed: {list(QUOTING_MODES)}")
        self.quoting = quoting

    def encode(self, ledger: MarkLedger) -> bytes:
        if ledger.is_empty():
            raise EmptyLedgerError("No frames marked to export.")
        rows = encode_rows(ledger.all(), self.quoting)
        return ("\n".join(rows) + "\n").encode("utf-8")


def encode(ledger: MarkLedger, quoting: str = QUOTING_VERBATIM) -> bytes:
    return ExportEncoder(quoting).encode(ledger)
