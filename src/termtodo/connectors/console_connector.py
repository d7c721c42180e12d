# src/termtodo/connectors/console_connector.py

from __future__ import annotations

import logging

from ..cli.commands import registry as command_registry
from ..cli.render import render_tasks
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = "todo> "


def handle_line(state: AppState, line: str) -> str:
    """
    One input event -> one reply.

    Slash commands go through the registry; anything else becomes a new task.
    Recoverable task errors (NotFound, EmptyTitle, ...) come back as reply text.
    """
    cmd_response = command_registry.handle(state, line)
    if cmd_response is not None:
        return cmd_response

    return command_registry.handle(state, "/add " + line) or ""


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%s).", len(state.store))

    if state.startup_warning:
        print(f"!! {state.startup_warning}\n")

    print(render_tasks(state))
    print("\nType a task to add it. Use /help for commands, /exit to quit.\n")

    while True:
        try:
            user_input = input(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit", "/q"):
            logger.info("Console exit command received.")
            break

        try:
            reply = handle_line(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            print("Internal error while handling that input (details in the log file).")
            continue

        if reply:
            print(reply)

        if command_registry.wants_list(user_input):
            print()
            print(render_tasks(state))
        print()

    logger.info("Console connector finished.")
