# src/task_tracker/tasks/lifecycle.py

"""
Multi-step task operations composed from the store primitives.

Each function that touches more than one record runs inside a single
store transaction, so a failure leaves both collections untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from ..errors import EmptyDescription, NoTasksError, NotFound, NoUpdate
from . import compactor
from .codec import MAX_ID, decode_id, decode_task, encode_id, encode_task, format_timestamp
from .codec import now as current_time
from .tag_parser import parse_description, parse_tags
from .task_models import ARCHIVE, TASKS, Task, TaskStatus, UpdateOptions
from .task_store import TaskStore, task_key

logger = logging.getLogger(__name__)


def toggle_status(task: Task, *, now: datetime | None = None) -> Task:
    """Return a copy of `task` with its status flipped."""
    if task.status == TaskStatus.COMPLETE:
        return replace(task, status=TaskStatus.INCOMPLETE, completed_at="")
    return replace(
        task,
        status=TaskStatus.COMPLETE,
        completed_at=format_timestamp(now or current_time()),
    )


def add_task(store: TaskStore, text: str, *, now: datetime | None = None) -> tuple[int, str, str]:
    """Parse `text` and insert it into the tasks collection. Returns (id, description, tag)."""
    tag, description = parse_description(text)
    task_id = store.insert(TASKS, description, tag, now=now)
    logger.info("Added task id=%s tag=%s", task_id, tag or "-")
    return task_id, description, tag


def complete_task(store: TaskStore, task_id: int, *, now: datetime | None = None) -> bool:
    """
    Mark a task complete.

    Returns False when the task was already complete (nothing is written).
    """
    key = task_key(task_id)
    with store.transaction() as tx:
        b = tx.require_bucket(TASKS)
        raw = b.get(key)
        if raw is None:
            raise NotFound(f"Task {task_id} does not exist")

        task = decode_task(raw)
        if task.is_complete:
            logger.debug("Task id=%s already complete", task_id)
            return False

        b.put(key, encode_task(toggle_status(task, now=now)))
    logger.info("Completed task id=%s", task_id)
    return True


def update_task(
    store: TaskStore,
    task_id: int,
    options: UpdateOptions,
    *,
    now: datetime | None = None,
) -> Task:
    """
    Apply `options` to one task and return the stored result.

    A new description is tag-parsed; its first tag replaces the old one,
    and a description without tags keeps the old tag.
    """
    if options.is_empty:
        raise NoUpdate()

    new_tags: list[str] = []
    new_desc: str | None = None
    if options.new_description:
        new_tags, new_desc = parse_tags(options.new_description)
        if not new_desc:
            raise EmptyDescription("Must provide a task description")

    key = encode_id(task_id) if 1 <= task_id <= MAX_ID else None
    with store.transaction() as tx:
        b = tx.require_bucket(TASKS)
        raw = b.get(key) if key is not None else None
        if raw is None:
            raise NotFound(f"Invalid task ID, {b.count()} tasks exist")

        task = decode_task(raw)
        if options.flip_status:
            task = toggle_status(task, now=now)
        if new_desc is not None:
            task = replace(task, description=new_desc, tag=new_tags[0] if new_tags else task.tag)
        b.put(key, encode_task(task))

    logger.info("Updated task id=%s status=%s", task_id, task.status)
    return task


def finish(store: TaskStore, ids: Iterable[int] | None = None) -> int:
    """
    Move completed tasks from the tasks collection to the archive.

    With `ids`, only completed tasks among those ids move. The remaining
    tasks are renumbered 1..N in their original order. Returns the number
    of archived tasks.
    """
    only = set(ids) if ids is not None else None

    with store.transaction() as tx:
        tasks = tx.bucket(TASKS)
        if tasks is None:
            raise NoTasksError()
        archive = tx.create_bucket_if_not_exists(ARCHIVE)

        kept: list[bytes] = []
        moved = 0
        for k, v in tasks.items():
            selected = only is None or decode_id(k) in only
            if selected and decode_task(v).is_complete:
                archive.put(encode_id(archive.next_sequence()), v)
                moved += 1
            else:
                kept.append(v)

        remaining = compactor.rewrite(tasks, kept)

    logger.info("Finished tasks archived=%d remaining=%d", moved, remaining)
    return moved
