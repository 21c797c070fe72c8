# video_marker/persistence.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Dict, Optional

from .domain import AppConfig
from .errors import EncodingError
from .export import ExportEncoder
from .ledger import MarkLedger

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "config.json"
CONFIG_DIR_ENV = "VIDEO_MARKER_HOME"


# -----------------------------
# Atomic file helpers
# -----------------------------

def _atomic_write_bytes(path: str, data: bytes) -> None:
    d = os.path.dirname(path) or "."
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            logger.debug("Could not remove temp file %s", tmp_path)


def _atomic_write_json(path: str, payload: Dict) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    _atomic_write_bytes(path, (text + "\n").encode("utf-8"))


def _read_json(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# -----------------------------
# App config (<config_dir>/config.json)
# -----------------------------

def config_dir() -> str:
    override = os.environ.get(CONFIG_DIR_ENV, "").strip()
    if override:
        return override
    return os.path.join(os.path.expanduser("~"), ".video_marker")


def config_path(directory: Optional[str] = None) -> str:
    return os.path.join(directory or config_dir(), CONFIG_FILENAME)


def load_app_config(directory: Optional[str] = None) -> AppConfig:
    """
    Loads config.json. Missing or invalid files yield defaults.
    """
    path = config_path(directory)
    if not os.path.exists(path):
        return AppConfig()
    try:
        data = _read_json(path)
        if not isinstance(data, dict):
            raise ValueError("config root must be an object")
        return AppConfig.from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Ignoring invalid config %s: %s", path, e)
        return AppConfig()


def save_app_config(cfg: AppConfig, directory: Optional[str] = None) -> str:
    path = config_path(directory)
    _atomic_write_json(path, cfg.to_dict())
    return path


# -----------------------------
# Export sink
# -----------------------------

def export_dir_for(cfg: AppConfig) -> str:
    return cfg.export_dir or tempfile.gettempdir()


def write_export(data: bytes, filename: str, directory: str) -> str:
    """
    Writes encoded export bytes atomically and returns the path.

    Any filesystem failure is raised as EncodingError; the caller's ledger is untouched.
    """
    if not filename or os.path.basename(filename) != filename:
        raise EncodingError(f"Invalid export filename: {filename!r}")
    path = os.path.join(directory, filename)
    try:
        _atomic_write_bytes(path, data)
    except OSError as e:
        logger.error("Export to %s failed: %s", path, e)
        raise EncodingError(f"Could not write {path}: {e}") from e
    logger.info("Exported %d bytes to %s", len(data), path)
    return path


def export_ledger(ledger: MarkLedger, cfg: Optional[AppConfig] = None) -> str:
    """Encode the ledger (EmptyLedgerError if there is nothing to export) and write it."""
    cfg = cfg or AppConfig()
    data = ExportEncoder(cfg.csv_quoting).encode(ledger)
    return write_export(data, cfg.export_filename, export_dir_for(cfg))
