# src/termtodo/cli/render.py

"""Plain-text rendering of the visible task list (read-only view of the store)."""

from __future__ import annotations

from datetime import datetime

from ..core.state import AppState
from ..tasks.query import subtask_progress, visible_tasks
from ..tasks.task_models import Priority, Task
from ..themes import RGB, Theme

PRIORITY_GLYPHS = {Priority.HIGH: "▲", Priority.MEDIUM: "●", Priority.LOW: "▼"}


class Painter:
    def __init__(self, theme: Theme, enabled: bool) -> None:
        self.theme = theme
        self.enabled = enabled

    def __call__(self, text: str, rgb: RGB, *, dim: bool = False) -> str:
        if not self.enabled:
            return text
        r, g, b = rgb
        prefix = "\033[2m" if dim else ""
        return f"{prefix}\033[38;2;{r};{g};{b}m{text}\033[0m"


def format_due(due: datetime, default_time=None) -> str:
    if default_time is not None and due.time().replace(second=0, microsecond=0) == default_time:
        return due.strftime("%Y-%m-%d")
    return due.strftime("%Y-%m-%d %H:%M")


def _priority_color(theme: Theme, priority: Priority) -> RGB:
    if priority is Priority.HIGH:
        return theme.red
    if priority is Priority.LOW:
        return theme.green
    return theme.yellow


def render_task_line(state: AppState, task: Task, depth: int, now: datetime, paint: Painter) -> str:
    theme = paint.theme
    default_time = getattr(state.settings, "default_due_time", None)

    box = "[x]" if task.completed else "[ ]"
    parts = [
        "  " * depth,
        paint(f"{task.id:>3}", theme.subtext),
        " ",
        box,
        " ",
        paint(PRIORITY_GLYPHS[task.priority], _priority_color(theme, task.priority)),
        " ",
        paint(task.title, theme.subtext if task.completed else theme.text, dim=task.completed),
    ]

    if task.due_at is not None:
        color = theme.red if task.is_overdue(now) else theme.blue
        parts.append(paint(f" (due: {format_due(task.due_at, default_time)})", color))

    if task.children:
        done, total = subtask_progress(state.store, task.id)
        parts.append(paint(f" [{done}/{total}]", theme.primary))

    if task.tags:
        parts.append(" " + paint(" ".join(f"#{t}" for t in sorted(task.tags)), theme.accent))

    return "".join(parts)


def render_tasks(state: AppState, now: datetime | None = None) -> str:
    now = now or datetime.now().astimezone()
    paint = Painter(state.themes.current, bool(getattr(state.settings, "color", False)))

    rows = visible_tasks(state.store, state.view)

    flags = []
    if state.view.focus:
        flags.append("focus")
    if not state.view.with_focus(False).is_empty():
        flags.append("filtered")
    if state.view.sort:
        flags.append(f"sort:{state.view.sort}")
    suffix = f" [{', '.join(flags)}]" if flags else ""

    header = paint(f"Tasks: {len(rows)} shown / {len(state.store)} total{suffix}", paint.theme.primary)
    if not rows:
        return header + "\n  (nothing to show; type a task to add it, /help for commands)"

    lines = [header]
    lines.extend(render_task_line(state, row.task, row.depth, now, paint) for row in rows)
    return "\n".join(lines)
