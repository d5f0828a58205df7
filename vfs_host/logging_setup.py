"""
Logging bootstrap: console output plus an optional JSONL sink.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

from .console import console

DEFAULT_PATH = os.environ.get("VFS_HOST_LOG_PATH")
DEFAULT_LEVEL = os.environ.get("VFS_HOST_LOG_LEVEL", "INFO").upper()

# LogRecord attributes that are not user-supplied extras
_RECORD_FIELDS = frozenset({
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "name",
    "taskName",
})


class JsonlHandler(logging.Handler):
    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "vfs_host.log", "ver": "1.0.0"},
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k in _RECORD_FIELDS:
                continue
            base.setdefault(k, v)
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_logging(level: str | None = None, path: str | None = None) -> None:
    """Configure the root logger once per process.

    Args:
        level: Log level name (default: ``VFS_HOST_LOG_LEVEL`` or INFO)
        path: JSONL log file (default: ``VFS_HOST_LOG_PATH``, unset means none)
    """
    path = path or DEFAULT_PATH
    level = (level or DEFAULT_LEVEL).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Remove handlers installed by a previous call to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, (JsonlHandler, RichHandler)):
            root.removeHandler(h)
    root.addHandler(RichHandler(console=console, show_path=False, markup=False))
    if path:
        root.addHandler(JsonlHandler(path))
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
