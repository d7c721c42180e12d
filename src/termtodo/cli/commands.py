# src/termtodo/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from ..core.state import AppState
from ..tasks.errors import TaskError
from ..tasks.query import SORT_KEYS, parse_query
from ..tasks.task_models import Priority
from .render import format_due, render_tasks

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/add, /done, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._show_list: dict[str, bool] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        show_list: bool = True,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in [key, *(a.lower() for a in aliases)]:
            self._handlers[alias] = handler
            self._show_list[alias] = show_list

    def wants_list(self, line: str) -> bool:
        """Whether the task list should be redrawn after handling `line`."""
        if not line.startswith("/"):
            return True
        parts = line[1:].split()
        return bool(parts) and self._show_list.get(parts[0].lower(), False)

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        TaskError from the store becomes the reply; the store is left consistent.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except TaskError as e:
            logger.info("/%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Anything that is not a command is added as a new task.")
        return "\n".join(lines)


registry = CommandRegistry()


def _task_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValueError(usage)
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        raise ValueError(usage) from None


def _usage(fn: Callable[[AppState, list[str]], str], usage: str) -> CommandHandler:
    """Turn a bad-argument ValueError into the usage line."""

    def wrapper(state: AppState, args: list[str]) -> str:
        try:
            return fn(state, args)
        except ValueError:
            return f"Usage: {usage}"

    wrapper.__name__ = fn.__name__
    return wrapper


def _describe_added(state: AppState, task_id: int) -> str:
    task = state.store.get(task_id)
    bits = [f"Added #{task.id}: {task.title}"]
    if task.due_at is not None:
        bits.append(f"due {format_due(task.due_at, getattr(state.settings, 'default_due_time', None))}")
    if task.priority is not Priority.MEDIUM:
        bits.append(f"priority {task.priority}")
    if task.tags:
        bits.append(" ".join(f"#{t}" for t in sorted(task.tags)))
    return ", ".join(bits)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return render_tasks(state)


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add <task text>"
    task_id = state.store.add_task(" ".join(args))
    return _describe_added(state, task_id)


def cmd_sub(state: AppState, args: list[str]) -> str:
    parent_id = _task_id(args, "/sub <parent id> <task text>")
    if len(args) < 2:
        raise ValueError("missing text")
    task_id = state.store.add_subtask(parent_id, " ".join(args[1:]))
    return _describe_added(state, task_id) + f" (under #{parent_id})"


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/done <id>")
    completed = state.store.toggle_complete(task_id)
    return f"#{task_id} marked {'done' if completed else 'not done'}."


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/del <id>")
    removed = state.store.delete(task_id)
    extra = f" (with {removed - 1} subtasks)" if removed > 1 else ""
    return f"Deleted #{task_id}{extra}."


def cmd_priority(state: AppState, args: list[str]) -> str:
    """
    /prio <id>        -> cycle high -> medium -> low
    /prio <id> <lvl>  -> set explicitly
    """
    task_id = _task_id(args, "/prio <id> [high|medium|low]")
    if len(args) > 1:
        level = Priority.from_raw(args[1])
        if level is None:
            raise ValueError(args[1])
        state.store.set_priority(task_id, level)
    else:
        level = state.store.cycle_priority(task_id)
    return f"#{task_id} priority is now {level}."


def cmd_due(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/due <id> <when|none>")
    due = state.store.set_due_date(task_id, " ".join(args[1:]))
    if due is None:
        return f"#{task_id} has no due date now."
    return f"#{task_id} due {format_due(due, getattr(state.settings, 'default_due_time', None))}."


def cmd_edit(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/edit <id> <new text>")
    if len(args) < 2:
        raise ValueError("missing text")
    state.store.rename(task_id, " ".join(args[1:]))
    return f"#{task_id} is now: {state.store.get(task_id).title}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    removed = state.store.clear_completed()
    return f"Removed {removed} completed task{'s' if removed != 1 else ''}."


def cmd_find(state: AppState, args: list[str]) -> str:
    """
    /find <query>  -> filter: words, #tag, p:high, is:done, sort:due
    /find          -> clear the filter (focus mode is kept)
    """
    state.view = parse_query(" ".join(args), focus=state.view.focus)
    if state.view.with_focus(False).is_empty():
        return "Filter cleared."
    return f"Filter: {' '.join(args)}"


def cmd_focus(state: AppState, args: list[str]) -> str:
    on = state.toggle_focus()
    return f"Focus mode {'ON (completed tasks hidden)' if on else 'OFF'}."


def cmd_sort(state: AppState, args: list[str]) -> str:
    key = args[0].lower() if args else "none"
    if key in ("none", "off"):
        state.view = replace(state.view, sort=None)
        return "Sorting off (store order)."
    if key not in SORT_KEYS:
        raise ValueError(key)
    state.view = replace(state.view, sort=key)
    return f"Sorting by {key}."


def cmd_theme(state: AppState, args: list[str]) -> str:
    """
    /theme         -> switch to the next theme
    /theme <name>  -> switch to a named theme
    """
    if args:
        try:
            state.themes.set_theme(args[0].lower())
        except KeyError:
            return f"Unknown theme {args[0]!r}. Available: {', '.join(state.themes.names())}"
    else:
        state.themes.cycle()
    return f"Theme: {state.themes.current.name}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"], show_list=False)
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"], show_list=False)
registry.register("add", cmd_add, help_text="Add a task: /add Pay rent friday #home", aliases=["a"])
registry.register(
    "sub",
    _usage(cmd_sub, "/sub <parent id> <task text>"),
    help_text="Add a subtask: /sub 3 Draft outline tomorrow",
    aliases=["s"],
)
registry.register("done", _usage(cmd_done, "/done <id>"), help_text="Toggle completion: /done 3", aliases=["x"])
registry.register(
    "del", _usage(cmd_delete, "/del <id>"), help_text="Delete a task and its subtasks.", aliases=["rm"]
)
registry.register(
    "prio",
    _usage(cmd_priority, "/prio <id> [high|medium|low]"),
    help_text="Cycle or set priority: /prio 3 | /prio 3 high",
    aliases=["p"],
)
registry.register(
    "due",
    _usage(cmd_due, "/due <id> <when|none>"),
    help_text="Set due date: /due 3 friday at 2pm | /due 3 none",
    aliases=["d"],
)
registry.register("edit", _usage(cmd_edit, "/edit <id> <new text>"), help_text="Re-title a task.", aliases=["e"])
registry.register("clear", cmd_clear, help_text="Remove all completed tasks.", aliases=["purge"])
registry.register("find", cmd_find, help_text="Filter: /find words #tag p:high is:open sort:due", aliases=["search"])
registry.register("focus", cmd_focus, help_text="Toggle focus mode (hide completed tasks).", aliases=["f"])
registry.register(
    "sort", _usage(cmd_sort, "/sort priority|due|title|none"), help_text="Sort siblings: /sort due"
)
registry.register("theme", cmd_theme, help_text="Switch theme: /theme | /theme nord", aliases=["t"])
