# video_marker/__main__.py
from __future__ import annotations

import argparse
from typing import List, Optional

from .app import run_app


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="video-marker",
        description="Play several videos side by side, draw on them and export marked frames as CSV.",
    )
    parser.add_argument("videos", nargs="*", help="video files to load at startup")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ... (default from config)")
    args = parser.parse_args(argv)
    return run_app(paths=args.videos, log_level=args.log_level)


if __name__ == "__main__":
    raise SystemExit(main())
