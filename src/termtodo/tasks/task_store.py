# src/termtodo/tasks/task_store.py

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import Clock, TaskBackend, system_clock
from .errors import EmptyTitleError, InvalidDateError, NotFoundError, StorageError
from .extraction import TextExtractor
from .persistence import StoreDocument, decode_document, encode_store
from .task_models import ExtractionResult, Priority, Task
from .time_resolver import resolve_time_reference

logger = logging.getLogger(__name__)

CLEAR_DUE_WORDS = frozenset({"", "none", "clear", "-"})


@dataclass(frozen=True, slots=True)
class StoreSnapshot:
    """Deep copy of the whole tree; equal snapshots mean identical stores."""

    roots: tuple[int, ...]
    tasks: dict[int, Task]
    next_id: int


class TaskStore:
    """
    In-memory task tree with write-through persistence.

    Layout:
    - every task lives in one dict keyed by id (ids are unique across the tree)
    - a task lists its subtasks by id in `children`; roots are kept separately
    - there are no parent pointers; parent_of() scans the children lists

    Every successful mutation is saved through the backend before returning.
    Failed operations (NotFound / InvalidDate / EmptyTitle) leave the tree untouched.
    """

    def __init__(
        self,
        backend: TaskBackend | None = None,
        *,
        extractor: TextExtractor | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._backend = backend
        self._extractor = extractor or TextExtractor()
        self._clock = clock

        self._tasks: dict[int, Task] = {}
        self._roots: list[int] = []
        self._next_id = 1

        if backend is not None:
            data = backend.load()
            if data:
                self._restore(decode_document(data))
        logger.info("TaskStore ready backend=%s total=%s", backend, len(self._tasks))

    def _restore(self, doc: StoreDocument) -> None:
        self._tasks = doc.tasks
        self._roots = doc.roots
        self._next_id = max(doc.next_id, max(self._tasks, default=0) + 1)

    # ---- low-level helpers ----

    def _commit(self, action: str, task_id: int | None = None) -> None:
        logger.debug("Task %s id=%s", action, task_id)
        if self._backend is None:
            return
        try:
            self._backend.save(encode_store(self))
        except StorageError:
            logger.exception("Write-through save failed after %s id=%s", action, task_id)
            raise
        except OSError as e:
            logger.exception("Write-through save failed after %s id=%s", action, task_id)
            raise StorageError(str(e)) from e

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def _siblings(self, task_id: int) -> list[int]:
        parent_id = self.parent_of(task_id)
        return self._roots if parent_id is None else self._tasks[parent_id].children

    def _drop_subtree(self, task_id: int) -> int:
        task = self._tasks.pop(task_id)
        return 1 + sum(self._drop_subtree(cid) for cid in task.children)

    def _extract(self, raw: str, now: datetime | None) -> tuple[ExtractionResult, datetime]:
        now = now or self._clock()
        result = self._extractor.extract(raw, now)
        if not result.title:
            raise EmptyTitleError(raw)
        return result, now

    def _new_task(self, result: ExtractionResult, now: datetime) -> Task:
        task = Task(
            id=self._next_id,
            title=result.title,
            priority=result.priority or Priority.MEDIUM,
            due_at=result.due_at,
            tags=set(result.tags),
            created_at=now,
        )
        self._next_id += 1
        self._tasks[task.id] = task
        return task

    # ---- reads ----

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        for task, _depth in self.walk():
            yield task

    def get(self, task_id: int) -> Task:
        return self._require(task_id)

    def roots(self) -> list[Task]:
        return [self._tasks[i] for i in self._roots]

    def children(self, task_id: int) -> list[Task]:
        return [self._tasks[i] for i in self._require(task_id).children]

    def parent_of(self, task_id: int) -> int | None:
        """Id of the task holding `task_id` as a subtask, None for top-level tasks."""
        self._require(task_id)
        if task_id in self._roots:
            return None
        for task in self._tasks.values():
            if task_id in task.children:
                return task.id
        raise NotFoundError(task_id)

    def walk(self) -> Iterator[tuple[Task, int]]:
        """Depth-first (task, depth) pairs in display order."""
        stack = [(i, 0) for i in reversed(self._roots)]
        while stack:
            task_id, depth = stack.pop()
            task = self._tasks[task_id]
            yield task, depth
            stack.extend((cid, depth + 1) for cid in reversed(task.children))

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            roots=tuple(self._roots),
            tasks=copy.deepcopy(self._tasks),
            next_id=self._next_id,
        )

    # ---- mutations ----

    def add_task(self, raw: str, now: datetime | None = None) -> int:
        """Create a top-level task from free text; returns the new id."""
        result, now = self._extract(raw, now)
        task = self._new_task(result, now)
        self._roots.append(task.id)
        logger.info("Task added id=%s title=%r due=%s", task.id, task.title, task.due_at)
        self._commit("add", task.id)
        return task.id

    def add_subtask(self, parent_id: int, raw: str, now: datetime | None = None) -> int:
        parent = self._require(parent_id)
        result, now = self._extract(raw, now)
        task = self._new_task(result, now)
        parent.children.append(task.id)
        logger.info("Subtask added id=%s parent=%s title=%r", task.id, parent_id, task.title)
        self._commit("add_subtask", task.id)
        return task.id

    def toggle_complete(self, task_id: int) -> bool:
        task = self._require(task_id)
        task.completed = not task.completed
        self._commit("toggle", task_id)
        return task.completed

    def delete(self, task_id: int) -> int:
        """Remove the task and its whole subtree; returns how many tasks were removed."""
        siblings = self._siblings(task_id)
        siblings.remove(task_id)
        removed = self._drop_subtree(task_id)
        logger.info("Task deleted id=%s removed=%s", task_id, removed)
        self._commit("delete", task_id)
        return removed

    def cycle_priority(self, task_id: int) -> Priority:
        task = self._require(task_id)
        task.priority = task.priority.cycled()
        self._commit("cycle_priority", task_id)
        return task.priority

    def set_priority(self, task_id: int, priority: Priority) -> None:
        task = self._require(task_id)
        task.priority = priority
        self._commit("set_priority", task_id)

    def set_due_date(self, task_id: int, phrase: str, now: datetime | None = None) -> datetime | None:
        """
        Resolve `phrase` and overwrite the due date.

        "none" / "clear" / "-" / "" remove the due date instead.
        """
        task = self._require(task_id)
        if phrase.strip().lower() in CLEAR_DUE_WORDS:
            due = None
        else:
            due = resolve_time_reference(
                phrase, now or self._clock(), default_time=self._extractor.default_time
            )
            if due is None:
                raise InvalidDateError(phrase)
        task.due_at = due
        self._commit("set_due_date", task_id)
        return due

    def rename(self, task_id: int, raw: str, now: datetime | None = None) -> None:
        """
        Replace the title by running `raw` through extraction.

        New tags are added, a priority signal or a date phrase overwrite the old values.
        """
        task = self._require(task_id)
        result, _now = self._extract(raw, now)
        task.title = result.title
        task.tags |= result.tags
        if result.priority is not None:
            task.priority = result.priority
        if result.due_at is not None:
            task.due_at = result.due_at
        self._commit("rename", task_id)

    def clear_completed(self) -> int:
        """
        Remove every completed task at any depth, together with its subtree.

        Incomplete tasks stay, even when all of their subtasks were removed.
        Returns the number of removed tasks.
        """
        removed = 0

        def prune(ids: list[int]) -> list[int]:
            nonlocal removed
            kept: list[int] = []
            for task_id in ids:
                task = self._tasks[task_id]
                if task.completed:
                    removed += self._drop_subtree(task_id)
                else:
                    task.children = prune(task.children)
                    kept.append(task_id)
            return kept

        self._roots = prune(self._roots)
        if removed:
            logger.info("Cleared %s completed tasks", removed)
            self._commit("clear_completed")
        return removed
