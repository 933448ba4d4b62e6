"""Custom theme definitions for Livedeck TUI."""
from __future__ import annotations

from typing import Mapping

from textual.theme import Theme

__all__ = [
    "CUSTOM_THEMES",
    "DEFAULT_THEME_NAME",
]

_PURPLE = "#9146ff"
_PURPLE_DARK = "#772ce8"
_LAVENDER = "#bf94ff"
_LIVE_RED = "#eb0400"
_AMBER = "#ffb31a"
_GREEN = "#00c274"
_INK = "#0e0e10"
_SLATE = "#18181b"
_SLATE_LIGHT = "#26262c"
_MIST = "#efeff1"
_PAPER = "#f7f7f8"
_SMOKE = "#dedee3"
_GRAPHITE = "#53535f"

_LIVEDECK_DARK = Theme(
    "livedeck-dark",
    primary=_PURPLE,
    secondary=_LAVENDER,
    warning=_AMBER,
    error=_LIVE_RED,
    success=_GREEN,
    accent=_LIVE_RED,
    foreground=_MIST,
    background=_INK,
    surface=_SLATE,
    panel=_SLATE_LIGHT,
    dark=True,
)

_LIVEDECK_LIGHT = Theme(
    "livedeck-light",
    primary=_PURPLE_DARK,
    secondary=_PURPLE,
    warning=_AMBER,
    error=_LIVE_RED,
    success=_GREEN,
    accent=_LIVE_RED,
    foreground=_INK,
    background=_PAPER,
    surface=_MIST,
    panel=_SMOKE,
    boost=_GRAPHITE,
    dark=False,
)

CUSTOM_THEMES: Mapping[str, Theme] = {
    _LIVEDECK_DARK.name: _LIVEDECK_DARK,
    _LIVEDECK_LIGHT.name: _LIVEDECK_LIGHT,
}
"""Themes bundled with the application keyed by their names."""

DEFAULT_THEME_NAME = _LIVEDECK_DARK.name
"""Default theme to apply when none is specified explicitly."""
