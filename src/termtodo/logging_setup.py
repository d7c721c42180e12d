# src/termtodo/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "termtodo.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    The console shares stderr with the REPL, so only our own records pass at
    the handler level; captured warnings and third-party records need ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("termtodo."):
            return True
        return record.levelno >= logging.ERROR


def level_from_name(name: str, default: int = logging.WARNING) -> int:
    """"debug" / "INFO" / "15" -> logging level; unknown names give `default`."""
    text = str(name).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/termtodo",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging with:
    - Console handler: filtered, WARNING by default so the task list stays clean
    - File handler: everything from file_level up, in <log_dir>/termtodo.log

    Call this ONCE, before the first task is loaded.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)
    return log_file
