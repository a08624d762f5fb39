# src/task_tracker/errors.py

"""
Typed errors raised by the task-store engine.

Core code raises these and never exits the process; the CLI layer maps
every TaskError to a message and a non-zero exit code.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for all task-store errors."""


class NotFound(TaskError):
    """A collection or a key does not exist."""


class DecodeError(TaskError):
    """A stored key or payload could not be decoded."""


class EmptyDescription(TaskError):
    """Tag parsing left no description text."""

    def __init__(self, message: str = "Empty task") -> None:
        super().__init__(message)


class ParseError(TaskError):
    """A timestamp or date string is malformed."""


class NoTasksError(TaskError):
    """The tasks collection does not exist."""

    def __init__(self, message: str = "No tasks exist") -> None:
        super().__init__(message)


class LockTimeout(TaskError):
    """Another process holds the store lock."""


class InvalidWindow(TaskError):
    """A statistics window has inconsistent bounds."""


class NoUpdate(TaskError):
    """An update request would not change anything."""

    def __init__(self, message: str = "Did not make any updates, try using a flag") -> None:
        super().__init__(message)
