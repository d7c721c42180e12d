# src/termtodo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, passed explicitly to the pieces that need it.
- Nothing here touches the task file; bootstrap does that.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TERMTODO"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_time(name: str, default: time) -> time:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        hh, mm = raw.strip().split(":", 1)
        return time(int(hh), int(mm))
    except ValueError:
        return default


def _default_themes_dir() -> Path:
    base = os.getenv("XDG_CONFIG_HOME")
    root = Path(base).expanduser() if base else Path.home() / ".config"
    return root / "termtodo" / "themes"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path
    log_dir: Path

    # ---- Presentation ----
    theme: str
    themes_dir: Path
    color: bool

    # ---- Behaviour ----
    focus_mode: bool
    default_due_time: time

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "termtodo")
        log_level = _env(_k("LOG_LEVEL"), "WARNING")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/termtodo"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)

        theme = _env(_k("THEME"), "catppuccin-mocha")
        themes_dir = _env_path(_k("THEMES_DIR"), _default_themes_dir())
        # https://no-color.org
        color = _env_bool(_k("COLOR"), os.getenv("NO_COLOR") is None)

        focus_mode = _env_bool(_k("FOCUS_MODE"), False)
        default_due_time = _env_time(_k("DEFAULT_DUE_TIME"), time(23, 59))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            log_dir=log_dir,
            theme=theme,
            themes_dir=themes_dir,
            color=color,
            focus_mode=focus_mode,
            default_due_time=default_due_time,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
