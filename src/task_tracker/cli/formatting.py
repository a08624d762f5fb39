# src/task_tracker/cli/formatting.py

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from ..tasks.task_models import TaskPosition

INCOMPLETE_MARK = "🔴"
COMPLETE_MARK = "✅"


def format_tasks(tasks: Sequence[TaskPosition], *, show_tags: bool = False) -> str:
    lines: list[str] = []
    for t in tasks:
        mark = COMPLETE_MARK if t.task.is_complete else INCOMPLETE_MARK
        if show_tags:
            lines.append(f"{t.id}: {t.task.tag}: {t.task.description} {mark}")
        else:
            lines.append(f"{t.id}: {t.task.description} {mark}")
    return "\n".join(lines)


def format_archive(tasks: Sequence[TaskPosition]) -> str:
    return "\n".join(f"{t.id}: {t.task.description}" for t in tasks)


def format_day(dt: datetime) -> str:
    # m/d/yyyy without zero padding
    return f"{dt.month}/{dt.day}/{dt.year}"
