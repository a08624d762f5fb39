# src/task_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- ensures the local data directory exists,
- opens the TaskStore described by settings.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def open_store(*, settings=None) -> TaskStore:
    """
    Open the store from the provided settings.

    Keeping settings injectable makes the CLI easy to test against a temp dir.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)
    return TaskStore(settings.db_path, lock_timeout=settings.lock_timeout)
