# src/task_tracker/tasks/codec.py

"""
Byte formats of the store.

Keys are 8-byte big-endian ids, so byte order equals numeric order.
Values are JSON objects using the field names of the existing store file:
Desc, Status, Created, Completed, Tag.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any

from ..errors import DecodeError, ParseError
from .task_models import Task, TaskStatus

ID_WIDTH = 8
MAX_ID = 2 ** (8 * ID_WIDTH) - 1

_FIELDS = {
    "description": "Desc",
    "status": "Status",
    "created_at": "Created",
    "completed_at": "Completed",
    "tag": "Tag",
}


def encode_id(n: int) -> bytes:
    if not 0 <= n <= MAX_ID:
        raise ValueError(f"id out of range: {n}")
    return n.to_bytes(ID_WIDTH, "big")


def decode_id(key: bytes) -> int:
    if len(key) != ID_WIDTH:
        raise DecodeError(f"invalid key length {len(key)}, expected {ID_WIDTH}")
    return int.from_bytes(key, "big")


def encode_task(task: Task) -> bytes:
    payload = {
        _FIELDS["description"]: task.description,
        _FIELDS["status"]: str(task.status),
        _FIELDS["created_at"]: task.created_at,
        _FIELDS["completed_at"]: task.completed_at,
        _FIELDS["tag"]: task.tag,
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_task(raw: bytes) -> Task:
    try:
        data: Any = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"task payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("task payload is not a JSON object")

    values: dict[str, str] = {}
    for attr, key in _FIELDS.items():
        v = data.get(key)
        if not isinstance(v, str):
            raise DecodeError(f"task payload field {key!r} is missing or not a string")
        values[attr] = v

    try:
        status = TaskStatus(values.pop("status"))
    except ValueError as e:
        raise DecodeError(f"unknown task status: {e}") from e

    return Task(status=status, **values)


# ---- timestamps ----


def now() -> datetime:
    """Current local time, timezone-aware, whole seconds."""
    return datetime.now().astimezone().replace(microsecond=0)


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 with seconds precision; UTC is written as 'Z'."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    s = dt.replace(microsecond=0).isoformat()
    if dt.utcoffset() == timedelta(0):
        s = s[:-6] + "Z"
    return s


def parse_timestamp(s: str) -> datetime:
    try:
        dt = datetime.fromisoformat(s)
    except (TypeError, ValueError) as e:
        raise ParseError(f"malformed timestamp {s!r}") from e
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt
