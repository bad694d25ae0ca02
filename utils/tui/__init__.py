"""Terminal styling for rc."""

from utils.tui.theme import Theme, set_theme

__all__ = [
    "Theme",
    "set_theme",
]
