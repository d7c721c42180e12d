# src/termtodo/tasks/persistence.py

"""
Persistence adapter: the task tree <-> a JSON document.

Document layout (pretty-printed UTF-8, meant to stay hand-editable):

    {
      "version": 1,
      "next_id": 7,
      "tasks": [
        {"id": 1, "title": "...", "completed": false, "priority": "medium",
         "due": "2026-10-18T23:59:00+02:00", "tags": ["work"],
         "created_at": "...", "subtasks": [ ...same shape... ]}
      ]
    }

Reading is lenient where it can be without losing data:
- unknown keys are ignored
- a bare top-level list of records is accepted
- older record keys are understood: description, sub_tasks, due_date
  ("YYYY-MM-DD" or "YYYY-MM-DD HH:MM"), "#"-prefixed tags, "Medium" priorities
- missing or duplicated ids get fresh ids (logged)

Anything that cannot be read back faithfully raises CorruptDataError.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .errors import CorruptDataError, StorageError
from .task_models import Priority, Task
from .time_resolver import DEFAULT_DUE_TIME

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


@dataclass(slots=True)
class StoreDocument:
    tasks: dict[int, Task] = field(default_factory=dict)
    roots: list[int] = field(default_factory=list)
    next_id: int = 1


# ---- encode ----


def _encode_task(store: TaskStore, task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "completed": task.completed,
        "priority": task.priority.value,
        "due": task.due_at.isoformat() if task.due_at is not None else None,
        "tags": sorted(task.tags),
        "created_at": task.created_at.isoformat(),
        "subtasks": [_encode_task(store, store.get(cid)) for cid in task.children],
    }


def encode_store(store: TaskStore) -> bytes:
    doc = {
        "version": FORMAT_VERSION,
        "next_id": store.next_id,
        "tasks": [_encode_task(store, t) for t in store.roots()],
    }
    return (json.dumps(doc, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


# ---- decode ----


def _subtasks_of(rec: dict[str, Any]) -> Any:
    subtasks = rec["subtasks"] if "subtasks" in rec else rec.get("sub_tasks")
    # hand-edited files may say null for "no subtasks"
    return [] if subtasks is None else subtasks


def _iter_raw(records: Any) -> Iterator[dict[str, Any]]:
    """Pre-order walk over raw records, skipping anything that is not a record."""
    if not isinstance(records, list):
        return
    for rec in records:
        if isinstance(rec, dict):
            yield rec
            yield from _iter_raw(_subtasks_of(rec))


def _raw_id(rec: dict[str, Any]) -> int | None:
    raw = rec.get("id")
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        return None
    return raw


def _parse_instant(raw: Any, what: str) -> datetime | None:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise CorruptDataError(f"{what} must be a string, got {type(raw).__name__}")
    text = raw.strip()
    try:
        if len(text) == 10:
            # date-only value from older files: due at the end of that day
            value = datetime.combine(date.fromisoformat(text), DEFAULT_DUE_TIME)
        else:
            value = datetime.fromisoformat(text)
    except ValueError as e:
        raise CorruptDataError(f"invalid {what}: {raw!r}") from e
    if value.tzinfo is None:
        value = value.astimezone()
    return value


def _parse_tags(raw: Any) -> set[str]:
    if raw is None:
        return set()
    if not isinstance(raw, list) or not all(isinstance(t, str) for t in raw):
        raise CorruptDataError("tags must be a list of strings")
    out: set[str] = set()
    for t in raw:
        tag = t.strip().lstrip("#").lower()
        if tag:
            out.add(tag)
    return out


class _Decoder:
    def __init__(self, records: list[Any], next_id: int) -> None:
        ids = [i for i in (_raw_id(r) for r in _iter_raw(records)) if i is not None]
        self._fresh = max([next_id - 1, *ids], default=0) + 1
        self._seen: set[int] = set()
        self.doc = StoreDocument()
        self.doc.roots = self._decode_list(records, "tasks")
        self.doc.next_id = self._fresh

    def _assign_id(self, rec: dict[str, Any]) -> int:
        raw = _raw_id(rec)
        if raw is not None and raw not in self._seen:
            self._seen.add(raw)
            return raw
        new_id = self._fresh
        self._fresh += 1
        self._seen.add(new_id)
        logger.warning("Task record id=%r missing or duplicated; assigned id=%s", rec.get("id"), new_id)
        return new_id

    def _decode_list(self, records: Any, where: str) -> list[int]:
        if not isinstance(records, list):
            raise CorruptDataError(f"{where} must be a list")
        return [self._decode_record(rec) for rec in records]

    def _decode_record(self, rec: Any) -> int:
        if not isinstance(rec, dict):
            raise CorruptDataError(f"task record must be an object, got {type(rec).__name__}")

        title = rec.get("title", rec.get("description"))
        if not isinstance(title, str):
            raise CorruptDataError(f"task record {rec.get('id')!r} has no title")

        completed = rec.get("completed", False)
        if not isinstance(completed, bool):
            raise CorruptDataError(f"task record {rec.get('id')!r}: completed must be true/false")

        raw_priority = rec.get("priority")
        priority = Priority.from_db(raw_priority if isinstance(raw_priority, str) else None)

        due_raw = rec["due"] if "due" in rec else rec.get("due_date")
        created_at = _parse_instant(rec.get("created_at"), "created_at")

        task_id = self._assign_id(rec)
        task = Task(
            id=task_id,
            title=title.strip(),
            completed=completed,
            priority=priority,
            due_at=_parse_instant(due_raw, "due date"),
            tags=_parse_tags(rec.get("tags")),
        )
        if created_at is not None:
            task.created_at = created_at

        self.doc.tasks[task_id] = task
        task.children = self._decode_list(_subtasks_of(rec), f"subtasks of task {task_id}")
        return task_id


def decode_document(data: bytes | str) -> StoreDocument:
    """Parse serialized bytes into a StoreDocument, or raise CorruptDataError."""
    try:
        raw = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDataError(f"task file is not valid JSON: {e}") from e

    next_id = 1
    if isinstance(raw, list):
        records = raw
    elif isinstance(raw, dict):
        records = raw.get("tasks")
        if records is None:
            records = []
        raw_next = raw.get("next_id", 1)
        if isinstance(raw_next, int) and not isinstance(raw_next, bool) and raw_next > 0:
            next_id = raw_next
    else:
        raise CorruptDataError("task file must contain a JSON object or list")

    return _Decoder(records, next_id).doc


# ---- file backend ----


class JsonTaskFile:
    """
    TaskBackend writing the document to a single JSON file.

    Writes go to a sibling temp file which then replaces the target, so a crash
    mid-write leaves the previous version intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonTaskFile({str(self.path)!r})"

    def load(self) -> bytes | None:
        if not self.path.exists():
            return None
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise StorageError(f"cannot read {self.path}: {e}") from e

    def save(self, data: bytes) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"cannot write {self.path}: {e}") from e

    def quarantine(self, now: datetime | None = None) -> Path | None:
        """Move an unreadable file aside so the next save cannot overwrite it."""
        if not self.path.exists():
            return None
        stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError as e:
            raise StorageError(f"cannot move {self.path} aside: {e}") from e
        logger.warning("Moved unreadable task file %s to %s", self.path, target)
        return target
