# src/termtodo/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Priority(StrEnum):
    """
    Task priority.

    Notes:
    - cycling goes High -> Medium -> Low -> High
    - unknown values read from disk fall back to MEDIUM
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def cycled(self) -> Priority:
        return _CYCLE[self]

    @property
    def rank(self) -> int:
        """Sort rank, most important first."""
        return _RANK[self]

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority | None:
        """Parse a user or file value; returns None when it is not a priority."""
        if not raw:
            return None
        return _ALIASES.get(raw.strip().lower())

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        return cls.from_raw(raw) or cls.MEDIUM


_CYCLE = {
    Priority.HIGH: Priority.MEDIUM,
    Priority.MEDIUM: Priority.LOW,
    Priority.LOW: Priority.HIGH,
}

_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}

_ALIASES = {
    "high": Priority.HIGH,
    "h": Priority.HIGH,
    "medium": Priority.MEDIUM,
    "med": Priority.MEDIUM,
    "m": Priority.MEDIUM,
    "low": Priority.LOW,
    "l": Priority.LOW,
}


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True)
class Task:
    id: int
    title: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    due_at: datetime | None = None
    tags: set[str] = field(default_factory=set)

    # child ids, in display order; the parent is whoever lists this id
    children: list[int] = field(default_factory=list)

    created_at: datetime = field(default_factory=_now)

    def is_overdue(self, now: datetime) -> bool:
        return not self.completed and self.due_at is not None and self.due_at < now


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    title: str
    due_at: datetime | None = None
    priority: Priority | None = None  # None means "no signal", caller applies the default
    tags: frozenset[str] = frozenset()
