# src/termtodo/tasks/errors.py

"""
Error kinds raised by the task core.

Recoverable (the single operation is rejected, the store is unchanged):
- NotFoundError, InvalidDateError, EmptyTitleError

Startup:
- CorruptDataError: the task file exists but cannot be read back.

Write-through:
- StorageError: the mutation was applied in memory but could not be saved.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for every error the task core raises on purpose."""


class NotFoundError(TaskError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"No task with id {task_id}.")
        self.task_id = task_id


class InvalidDateError(TaskError):
    def __init__(self, phrase: str) -> None:
        super().__init__(f"Could not understand date {phrase!r}.")
        self.phrase = phrase


class EmptyTitleError(TaskError):
    def __init__(self, raw: str = "") -> None:
        super().__init__("Task title is empty.")
        self.raw = raw


class CorruptDataError(TaskError):
    def __init__(self, message: str, *, source: object = None) -> None:
        super().__init__(message)
        self.source = source


class StorageError(TaskError):
    pass
