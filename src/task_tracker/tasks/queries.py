# src/task_tracker/tasks/queries.py

from __future__ import annotations

from collections.abc import Collection, Sequence
from datetime import date, datetime, time, timedelta

from ..errors import InvalidWindow
from .codec import parse_timestamp
from .task_models import NO_TAG, TaskPosition


def _matches(tag: str, labels: Collection[str]) -> bool:
    if tag == "":
        return NO_TAG in labels
    return tag in labels


def filter_by_tags(
    tasks: Sequence[TaskPosition],
    include: Collection[str] = (),
    exclude: Collection[str] = (),
) -> list[TaskPosition]:
    """
    Filter tasks by tag.

    The label "none" stands for "no tag". Callers pass either `include` or
    `exclude`, not both. With neither, the input comes back unchanged.
    """
    if not include and not exclude:
        return list(tasks)

    kept = [t for t in tasks if not _matches(t.task.tag, exclude)]
    if include:
        return [t for t in kept if _matches(t.task.tag, include)]
    return kept


def stats_window(
    archive_tasks: Sequence[TaskPosition],
    start: datetime,
    end: datetime,
) -> list[TaskPosition]:
    """
    Keep tasks completed strictly between `start` and `end`.

    A malformed completion timestamp raises ParseError instead of being skipped.
    """
    out: list[TaskPosition] = []
    for t in archive_tasks:
        completed = parse_timestamp(t.task.completed_at)
        if start < completed < end:
            out.append(t)
    return out


def average_per_day(count: int, start: datetime, end: datetime) -> float:
    days = (end - start) / timedelta(days=1)
    if days <= 0:
        return 0.0
    return count / days


def _local_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min).astimezone()


def last_tick(dt: datetime) -> datetime:
    """
    The last representable instant of dt's local calendar day (23:59:59.999999).

    The next midnight is resolved in local time on its own, so the result
    carries that day's closing UTC offset even across a DST change.
    """
    local = dt.astimezone() if dt.tzinfo is not None else dt
    return _local_midnight(local.date() + timedelta(days=1)) - timedelta(microseconds=1)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = _local_midnight(day)
    return start, last_tick(start)


def resolve_window(
    start_day: date | None = None,
    end_day: date | None = None,
    on_day: date | None = None,
    *,
    now: datetime,
) -> tuple[datetime, datetime]:
    """
    Turn user-supplied days into a (start, end) window.

    - nothing given: the 24 hours before `now`
    - an end without a start is rejected
    - `on_day` covers that whole calendar day
    - a window that starts and ends on the same instant covers that day
    """
    if on_day is not None:
        return day_bounds(on_day)

    if end_day is not None and start_day is None:
        raise InvalidWindow("Must specify a start date")

    end = _local_midnight(end_day) if end_day is not None else now
    start = _local_midnight(start_day) if start_day is not None else end - timedelta(hours=24)

    if end < start:
        raise InvalidWindow("End date occurred prior to the start date")

    if start == end:
        end = last_tick(end)
    return start, end


def all_tags(tasks: Sequence[TaskPosition]) -> list[str]:
    """Distinct non-empty tags in first-seen order."""
    seen: list[str] = []
    for t in tasks:
        if t.task.tag and t.task.tag not in seen:
            seen.append(t.task.tag)
    return seen
