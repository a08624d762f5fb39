# tests/conftest.py

from __future__ import annotations

import time
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from task_tracker.tasks.task_models import TASKS
from task_tracker.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the CLI bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the user's home directory and env.
    """
    return SimpleNamespace(
        app_name="task",
        log_level="WARNING",
        log_dir=tmp_path,
        data_dir=tmp_path,
        db_path=tmp_path / "tasks.db",
        lock_timeout=0.05,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> Iterator[TaskStore]:
    """A real SQLite store on a temp file; its behaviour is what we test."""
    s = TaskStore(settings.db_path, lock_timeout=settings.lock_timeout)
    yield s
    s.close()


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2024, 3, 10, 12, 0, 0).astimezone()


@pytest.fixture()
def insert_all(store: TaskStore):
    """Insert descriptions into the tasks collection in order; returns their ids."""

    def _insert(*descriptions: str, tag: str = "") -> list[int]:
        return [store.insert(TASKS, d, tag) for d in descriptions]

    return _insert


@pytest.fixture()
def new_york_tz(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run the test with local time set to a zone that observes DST."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
