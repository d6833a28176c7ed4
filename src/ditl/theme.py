"""Light/dark theme preference and palette lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .db import ActivityStore

logger = logging.getLogger(__name__)

THEME_PREFERENCE_KEY = "app_theme"


class AppTheme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True, slots=True)
class Palette:
    pink_card: str
    pink_primary: str
    lavender_quick: str
    background: str
    foreground: str


PALETTES: dict[AppTheme, Palette] = {
    AppTheme.LIGHT: Palette(
        pink_card="#FBE3EB",
        pink_primary="#E88AB8",
        lavender_quick="#E6D9FF",
        background="#FFF9F5",
        foreground="#000000",
    ),
    AppTheme.DARK: Palette(
        pink_card="#E88AB8",
        pink_primary="#FADBE6",
        lavender_quick="#E6D9FF",
        background="#2A2A28",
        foreground="#FFFFFF",
    ),
}


def parse_theme(value: Optional[str], default: AppTheme = AppTheme.LIGHT) -> AppTheme:
    """Return the theme named by ``value``, or ``default`` if it is not one."""
    if value is None:
        return default
    try:
        return AppTheme(value.strip().lower())
    except ValueError:
        logger.warning("Ignoring unknown theme %r; using %s.", value, default.value)
        return default


def toggle_theme(theme: AppTheme) -> AppTheme:
    return AppTheme.DARK if theme is AppTheme.LIGHT else AppTheme.LIGHT


def palette_for(theme: AppTheme) -> Palette:
    return PALETTES[theme]


class ThemePreference:
    """Persist the selected theme through the activity store."""

    def __init__(self, store: ActivityStore, default: AppTheme = AppTheme.LIGHT) -> None:
        self.store = store
        self.default = default

    def get(self) -> AppTheme:
        return parse_theme(self.store.get_preference(THEME_PREFERENCE_KEY), self.default)

    def set(self, theme: AppTheme) -> AppTheme:
        self.store.set_preference(THEME_PREFERENCE_KEY, theme.value)
        return theme

    def toggle(self) -> AppTheme:
        return self.set(toggle_theme(self.get()))
