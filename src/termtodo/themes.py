# src/termtodo/themes.py

"""
Colour themes for the console renderer.

Builtin palettes plus optional user themes: every *.json file in the themes
directory becomes a theme keyed by its file stem. A theme file holds a "name"
and any of the colour slots below as "#rrggbb" or [r, g, b]; missing slots
fall back to the default theme.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]

DEFAULT_THEME = "catppuccin-mocha"


@dataclass(frozen=True, slots=True)
class Theme:
    name: str
    text: RGB
    subtext: RGB
    primary: RGB
    accent: RGB
    red: RGB
    yellow: RGB
    green: RGB
    blue: RGB


BUILTIN_THEMES: dict[str, Theme] = {
    "catppuccin-mocha": Theme(
        name="Catppuccin Mocha",
        text=(205, 214, 244),
        subtext=(186, 194, 222),
        primary=(203, 166, 247),
        accent=(137, 220, 235),
        red=(243, 139, 168),
        yellow=(250, 179, 135),
        green=(166, 227, 161),
        blue=(137, 220, 235),
    ),
    "catppuccin-latte": Theme(
        name="Catppuccin Latte",
        text=(76, 79, 105),
        subtext=(92, 95, 119),
        primary=(136, 57, 239),
        accent=(4, 165, 229),
        red=(210, 15, 57),
        yellow=(254, 100, 11),
        green=(64, 160, 43),
        blue=(4, 165, 229),
    ),
    "dracula": Theme(
        name="Dracula",
        text=(248, 248, 242),
        subtext=(98, 114, 164),
        primary=(189, 147, 249),
        accent=(255, 184, 108),
        red=(255, 85, 85),
        yellow=(241, 250, 140),
        green=(80, 250, 123),
        blue=(139, 233, 253),
    ),
    "gruvbox-dark": Theme(
        name="Gruvbox Dark",
        text=(235, 219, 178),
        subtext=(168, 153, 132),
        primary=(211, 134, 155),
        accent=(254, 128, 25),
        red=(251, 73, 52),
        yellow=(250, 189, 47),
        green=(142, 192, 124),
        blue=(131, 165, 152),
    ),
    "nord": Theme(
        name="Nord",
        text=(236, 239, 244),
        subtext=(229, 233, 240),
        primary=(129, 161, 193),
        accent=(163, 190, 140),
        red=(191, 97, 106),
        yellow=(235, 203, 139),
        green=(163, 190, 140),
        blue=(129, 161, 193),
    ),
}

_COLOR_SLOTS = tuple(f.name for f in fields(Theme) if f.name != "name")


def _parse_color(raw: Any) -> RGB:
    if isinstance(raw, str):
        s = raw.strip().lstrip("#")
        if len(s) != 6:
            raise ValueError(f"bad colour {raw!r}")
        return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
    if isinstance(raw, list) and len(raw) == 3 and all(isinstance(c, int) and 0 <= c <= 255 for c in raw):
        return (raw[0], raw[1], raw[2])
    raise ValueError(f"bad colour {raw!r}")


def theme_from_dict(data: dict[str, Any], *, fallback: Theme, default_name: str) -> Theme:
    changes: dict[str, Any] = {"name": str(data.get("name") or default_name)}
    for slot in _COLOR_SLOTS:
        if slot in data:
            changes[slot] = _parse_color(data[slot])
    return replace(fallback, **changes)


class ThemeManager:
    """Holds the available themes and the current selection."""

    def __init__(self, themes_dir: str | Path | None = None) -> None:
        self._themes: dict[str, Theme] = dict(BUILTIN_THEMES)
        self._current = DEFAULT_THEME
        if themes_dir is not None:
            self.load_custom_themes(Path(themes_dir))

    def load_custom_themes(self, themes_dir: Path) -> int:
        if not themes_dir.is_dir():
            return 0
        loaded = 0
        for path in sorted(themes_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text("utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("theme file must hold a JSON object")
                self._themes[path.stem] = theme_from_dict(
                    data, fallback=BUILTIN_THEMES[DEFAULT_THEME], default_name=path.stem
                )
                loaded += 1
            except (OSError, ValueError) as e:
                logger.warning("Failed to load theme file %s: %s", path, e)
        logger.debug("Loaded %d custom themes from %s", loaded, themes_dir)
        return loaded

    def names(self) -> list[str]:
        return sorted(self._themes)

    @property
    def current_key(self) -> str:
        return self._current

    @property
    def current(self) -> Theme:
        return self._themes[self._current]

    def set_theme(self, key: str) -> None:
        if key not in self._themes:
            raise KeyError(f"Theme '{key}' not found")
        self._current = key

    def cycle(self) -> Theme:
        names = self.names()
        idx = names.index(self._current)
        self._current = names[(idx + 1) % len(names)]
        return self.current
