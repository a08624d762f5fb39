# src/task_tracker/logging_setup.py

"""
Logging for the `task` command.

stderr only shows this package's records at the configured level; everything
else (library loggers, captured `warnings`) reaches it only at ERROR. The log
file under the data directory gets every record.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "task.log"
PACKAGE_PREFIX = "task_tracker."

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _PackageOnlyFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith(PACKAGE_PREFIX) or record.levelno >= logging.ERROR


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(handler)


def setup_logging(
    *,
    log_dir: str | Path = Path.home() / "task",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """Install the stderr and file handlers on the root logger; returns the log file path."""
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.addFilter(_PackageOnlyFilter())
    _attach(root, console, console_level)
    _attach(root, logging.FileHandler(log_file, encoding="utf-8"), file_level)

    logging.captureWarnings(True)
    return log_file
