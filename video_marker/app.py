# video_marker/app.py
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from PyQt5.QtWidgets import QApplication

from .main_window import MainWindow
from .persistence import load_app_config


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_app(paths: Optional[Sequence[str]] = None, log_level: Optional[str] = None) -> int:
    cfg = load_app_config()
    configure_logging(log_level or cfg.log_level)

    app = QApplication(sys.argv[:1])

    win = MainWindow(config=cfg)
    win.show()

    # Videos given on the command line load like a file-dialog selection
    if paths:
        win.load_paths(list(paths))

    return app.exec_()
