# src/termtodo/cli/main.py

"""
CLI entrypoint.

Parses flags, initializes logging, builds AppState, then runs the console REPL.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import level_from_name, setup_logging
from ..themes import ThemeManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo",
        description="A terminal todo list with natural-language dates, tags and subtasks.",
    )
    parser.add_argument(
        "-t",
        "--theme",
        help="Theme to use (catppuccin-mocha, catppuccin-latte, dracula, gruvbox-dark, nord, "
        "or a custom theme file name)",
    )
    parser.add_argument(
        "--list-themes",
        action="store_true",
        help="List available themes and exit",
    )
    parser.add_argument(
        "--tasks-file",
        type=Path,
        help="Task file to use (default: $TERMTODO_TASKS_PATH or .local/termtodo/tasks.json)",
    )
    parser.add_argument(
        "--focus",
        action="store_true",
        help="Start in focus mode (completed tasks hidden)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.list_themes:
        print("Available themes:")
        for name in ThemeManager(settings.themes_dir).names():
            print(f"  {name}")
        return 0

    if args.tasks_file is not None:
        settings = replace(settings, tasks_path=args.tasks_file.expanduser())
    if args.focus:
        settings = replace(settings, focus_mode=True)

    log_file = setup_logging(log_dir=settings.log_dir, console_level=level_from_name(settings.log_level))

    logger.info("Starting %s (tasks=%s, log=%s)...", settings.app_name, settings.tasks_path, log_file)

    state = create_initial_state(settings=settings, theme=args.theme)
    if args.theme and state.themes.current_key != args.theme:
        print(f"Warning: Theme '{args.theme}' not found. Using default theme instead.", file=sys.stderr)

    try:
        run_console_loop(state)
    finally:
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
