# src/termtodo/core/ports.py

"""
Ports (interfaces) used by the core.

The task store depends on these Protocols instead of concrete implementations,
so the JSON file backend and the wall clock can be swapped out in tests.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

Clock = Callable[[], datetime]
# Returns "now" as an aware datetime in the local zone.


def system_clock() -> datetime:
    return datetime.now().astimezone()


class TaskBackend(Protocol):
    """
    Durable byte storage for the serialized store.

    load() returns None when nothing has been saved yet.
    save() must not return before the bytes are durable.
    """

    def load(self) -> bytes | None: ...
    def save(self, data: bytes) -> None: ...
