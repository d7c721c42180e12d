# src/termtodo/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..tasks.query import TaskFilter
from ..tasks.task_store import TaskStore
from ..themes import ThemeManager


@dataclass
class AppState:
    # Settings (or a SimpleNamespace in tests); threaded through instead of read globally.
    settings: Any

    store: TaskStore
    themes: ThemeManager

    # current view: search filter + focus flag
    view: TaskFilter = field(default_factory=TaskFilter)

    # set at startup when the task file could not be read
    startup_warning: str | None = None

    def toggle_focus(self) -> bool:
        self.view = self.view.with_focus(not self.view.focus)
        return self.view.focus
