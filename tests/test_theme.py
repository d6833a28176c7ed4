from __future__ import annotations

from ditl.theme import (
    THEME_PREFERENCE_KEY,
    AppTheme,
    ThemePreference,
    palette_for,
    parse_theme,
    toggle_theme,
)


def test_parse_theme_falls_back_to_light():
    assert parse_theme("dark") is AppTheme.DARK
    assert parse_theme(" Dark ") is AppTheme.DARK
    assert parse_theme("sepia") is AppTheme.LIGHT
    assert parse_theme(None) is AppTheme.LIGHT


def test_toggle_flips_between_variants():
    assert toggle_theme(AppTheme.LIGHT) is AppTheme.DARK
    assert toggle_theme(AppTheme.DARK) is AppTheme.LIGHT


def test_palettes_differ_by_theme():
    assert palette_for(AppTheme.LIGHT).background == "#FFF9F5"
    assert palette_for(AppTheme.DARK).background == "#2A2A28"


def test_preference_defaults_and_persists(store):
    preference = ThemePreference(store)
    assert preference.get() is AppTheme.LIGHT
    assert preference.toggle() is AppTheme.DARK
    assert ThemePreference(store).get() is AppTheme.DARK


def test_malformed_stored_value_reads_as_light(store):
    store.set_preference(THEME_PREFERENCE_KEY, "purple")
    assert ThemePreference(store).get() is AppTheme.LIGHT
