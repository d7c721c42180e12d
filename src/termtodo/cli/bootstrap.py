# src/termtodo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local directories exist,
- opens the task file and wires TaskStore + ThemeManager into AppState,
- turns an unreadable task file into a startup warning instead of a crash.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.errors import CorruptDataError, StorageError
from ..tasks.extraction import TextExtractor
from ..tasks.persistence import JsonTaskFile
from ..tasks.query import TaskFilter
from ..tasks.task_store import TaskStore
from ..themes import ThemeManager

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def open_store(settings) -> tuple[TaskStore, str | None]:
    """
    Open the task file.

    On CorruptDataError the file is moved aside (never overwritten) and an empty
    store is returned together with a message for the user. When the file can
    be neither read nor moved aside, the session runs in memory only so the
    data on disk is left alone.
    """
    backend = JsonTaskFile(settings.tasks_path)
    extractor = TextExtractor(default_time=settings.default_due_time)
    unsaved = "changes in this session will not be saved."
    try:
        return TaskStore(backend, extractor=extractor), None
    except StorageError as e:
        logger.error("Task file %s cannot be opened: %s", backend.path, e)
        warning = f"Could not open the task file ({e}). Starting with an empty list; {unsaved}"
        return TaskStore(None, extractor=extractor), warning
    except CorruptDataError as e:
        logger.error("Task file %s is unreadable: %s", backend.path, e)
        reason = e

    try:
        moved = backend.quarantine()
    except StorageError as e:
        logger.error("Could not quarantine %s: %s", backend.path, e)
        warning = (
            f"Could not read {backend.path}: {reason}. "
            f"The file could not be moved aside either ({e}); {unsaved}"
        )
        return TaskStore(None, extractor=extractor), warning

    warning = (
        f"Could not read {backend.path}: {reason}. "
        f"The file was kept as {moved}; starting with an empty list."
    )
    return TaskStore(backend, extractor=extractor), warning


def create_initial_state(*, settings=None, theme: str | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    themes = ThemeManager(settings.themes_dir)
    wanted = theme or settings.theme
    try:
        themes.set_theme(wanted)
    except KeyError:
        logger.warning("Theme %r not found; using %s", wanted, themes.current_key)

    store, warning = open_store(settings)

    return AppState(
        settings=settings,
        store=store,
        themes=themes,
        view=TaskFilter(focus=settings.focus_mode),
        startup_warning=warning,
    )
