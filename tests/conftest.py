# tests/conftest.py

from __future__ import annotations

from datetime import datetime, time
from pathlib import Path
from types import SimpleNamespace

import pytest

from termtodo.core.state import AppState
from termtodo.tasks.query import TaskFilter
from termtodo.tasks.task_store import TaskStore
from termtodo.themes import ThemeManager

from .fakes import MONDAY_10AM, FakeBackend, FixedClock


@pytest.fixture()
def now() -> datetime:
    return MONDAY_10AM


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="termtodo-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        log_dir=tmp_path,
        theme="catppuccin-mocha",
        themes_dir=tmp_path / "themes",
        color=False,
        focus_mode=False,
        default_due_time=time(23, 59),
    )


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def store(backend: FakeBackend, now: datetime) -> TaskStore:
    """Store with an in-memory backend and a clock frozen at Monday 10:00."""
    return TaskStore(backend, clock=FixedClock(now))


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    return AppState(
        settings=settings,
        store=store,
        themes=ThemeManager(),
        view=TaskFilter(),
    )
