# src/termtodo/tasks/query.py

"""
Query engine: filtered, lazily produced views over the task tree.

Each node is judged on its own: a subtask shows up when it matches, whether or
not its parent does. Focus mode drops completed tasks at every depth.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from .task_models import Priority, Task

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)

SortKey = Literal["priority", "due", "title"]
SORT_KEYS: tuple[str, ...] = ("priority", "due", "title")

_DONE_WORDS = {"done", "completed", "finished"}
_OPEN_WORDS = {"pending", "incomplete", "todo", "open"}


@dataclass(frozen=True, slots=True)
class TaskFilter:
    text: str = ""
    tag: str | None = None
    priority: Priority | None = None
    completed: bool | None = None
    focus: bool = False
    sort: SortKey | None = None

    def is_empty(self) -> bool:
        return (
            not self.text
            and self.tag is None
            and self.priority is None
            and self.completed is None
            and not self.focus
        )

    def matches(self, task: Task) -> bool:
        if self.focus and task.completed:
            return False
        if self.completed is not None and task.completed != self.completed:
            return False
        if self.priority is not None and task.priority is not self.priority:
            return False
        if self.tag is not None and self.tag.lower().lstrip("#") not in task.tags:
            return False
        if self.text:
            needle = self.text.lower()
            if needle not in task.title.lower() and not any(needle in t for t in task.tags):
                return False
        return True

    def with_focus(self, focus: bool) -> TaskFilter:
        return replace(self, focus=focus)


@dataclass(frozen=True, slots=True)
class VisibleTask:
    task: Task
    depth: int


def _sort_key(sort: SortKey):
    if sort == "priority":
        return lambda t: t.priority.rank
    if sort == "due":
        # undated tasks last
        return lambda t: (t.due_at is None, t.due_at.timestamp() if t.due_at else 0.0)
    return lambda t: t.title.lower()


def iter_visible(store: TaskStore, flt: TaskFilter | None = None) -> Iterator[VisibleTask]:
    """
    Yield matching tasks in tree order (siblings re-ordered when flt.sort is set).

    The generator reads the store as it goes; do not mutate the store while iterating.
    """
    flt = flt or TaskFilter()

    def visit(tasks: list[Task], depth: int) -> Iterator[VisibleTask]:
        if flt.sort is not None:
            # sorted() is stable, so equal keys keep store order
            tasks = sorted(tasks, key=_sort_key(flt.sort))
        for task in tasks:
            if flt.matches(task):
                yield VisibleTask(task=task, depth=depth)
            yield from visit(store.children(task.id), depth + 1)

    yield from visit(store.roots(), 0)


def visible_tasks(store: TaskStore, flt: TaskFilter | None = None) -> list[VisibleTask]:
    """Materialized snapshot for renderers."""
    return list(iter_visible(store, flt))


def parse_query(text: str, *, focus: bool = False) -> TaskFilter:
    """
    Build a TaskFilter from search-bar input.

    Supported tokens:
      #tag               tag filter
      p:high, priority:low
      is:done, is:open
      sort:priority|due|title
    A query that is only one of high/medium/low or done/pending-style words
    filters on that attribute; everything else is substring text.
    """
    tag: str | None = None
    priority: Priority | None = None
    completed: bool | None = None
    sort: SortKey | None = None
    words: list[str] = []

    for token in text.split():
        low = token.lower()
        key, sep, value = low.partition(":")
        if low.startswith("#") and len(low) > 1:
            tag = low[1:]
        elif sep and key in ("p", "priority") and Priority.from_raw(value):
            priority = Priority.from_raw(value)
        elif sep and key == "is" and value in _DONE_WORDS | _OPEN_WORDS:
            completed = value in _DONE_WORDS
        elif sep and key == "sort" and value in SORT_KEYS:
            sort = value  # type: ignore[assignment]
        else:
            words.append(token)

    rest = " ".join(words)
    if len(words) == 1 and tag is None and priority is None and completed is None:
        single = rest.lower()
        if single in _DONE_WORDS:
            return TaskFilter(completed=True, focus=focus, sort=sort)
        if single in _OPEN_WORDS:
            return TaskFilter(completed=False, focus=focus, sort=sort)
        if single in ("high", "medium", "low"):
            return TaskFilter(priority=Priority(single), focus=focus, sort=sort)

    return TaskFilter(
        text=rest,
        tag=tag,
        priority=priority,
        completed=completed,
        focus=focus,
        sort=sort,
    )


# ---- derived read-only views ----


def subtask_progress(store: TaskStore, task_id: int) -> tuple[int, int]:
    """(completed, total) over the direct subtasks of a task."""
    children = store.children(task_id)
    return sum(1 for c in children if c.completed), len(children)


def overdue_tasks(store: TaskStore, now: datetime) -> list[Task]:
    return [t for t in store if t.is_overdue(now)]
