# src/task_tracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

TASKS = "tasks"
ARCHIVE = "archive"
COLLECTIONS = (TASKS, ARCHIVE)

# Literal tag label that matches untagged tasks in filters.
NO_TAG = "none"


class TaskStatus(StrEnum):
    """
    Task completion status.

    Values are the strings stored in the task payload.
    """

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


@dataclass(slots=True)
class Task:
    description: str
    status: TaskStatus = TaskStatus.INCOMPLETE
    created_at: str = ""
    completed_at: str = ""
    tag: str = ""

    @property
    def is_complete(self) -> bool:
        return self.status == TaskStatus.COMPLETE


@dataclass(frozen=True, slots=True)
class TaskPosition:
    """A task paired with its current key; only produced by scans."""

    id: int
    task: Task


@dataclass(frozen=True, slots=True)
class UpdateOptions:
    new_description: str | None = None
    flip_status: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.new_description and not self.flip_status


@dataclass(frozen=True, slots=True)
class ListOptions:
    include_tags: frozenset[str] = field(default_factory=frozenset)
    exclude_tags: frozenset[str] = field(default_factory=frozenset)
    show_tags: bool = False


@dataclass(frozen=True, slots=True)
class StatsOptions:
    start: date | None = None
    end: date | None = None
    on: date | None = None
    verbose: bool = False
    average: bool = False
