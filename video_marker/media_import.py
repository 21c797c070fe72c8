# video_marker/media_import.py
from __future__ import annotations

import os
from typing import Iterable, List, Tuple


# Allowed local extensions (strict)
ALLOWED_VIDEO_EXTS = {
    ".mp4", ".mov", ".mkv", ".avi", ".m4v", ".webm",
}


def ext_lower(path: str) -> str:
    _, ext = os.path.splitext(path.strip())
    return ext.lower().strip()


def validate_local_video_path(path: str) -> Tuple[bool, str]:
    if not path:
        return (False, "No file selected.")
    if not os.path.exists(path):
        return (False, f"File does not exist: {path}")
    if not os.path.isfile(path):
        return (False, f"Not a file: {path}")
    ext = ext_lower(path)
    if ext not in ALLOWED_VIDEO_EXTS:
        return (False, f"Unsupported file type '{ext}'. Allowed: {sorted(ALLOWED_VIDEO_EXTS)}")
    return (True, "OK")


def display_name(path: str) -> str:
    return os.path.basename(path.rstrip("/\\")) or path


def collect_sources(paths: Iterable[str]) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]]]:
    """
    Split user-selected paths into loadable (name, path) pairs and (path, reason) rejects.

    Order of the selection is preserved; duplicates are kept (the same file may be
    loaded twice as two independent streams).
    """
    accepted: List[Tuple[str, str]] = []
    rejected: List[Tuple[str, str]] = []
    for p in paths or []:
        p = str(p)
        ok, msg = validate_local_video_path(p)
        if ok:
            accepted.append((display_name(p), os.path.abspath(p)))
        else:
            rejected.append((p, msg))
    return accepted, rejected


def video_file_filter() -> str:
    """Filter string for the open-file dialog."""
    pattern = " ".join(f"*{e}" for e in sorted(ALLOWED_VIDEO_EXTS))
    return f"Videos ({pattern});;All files (*)"
