"""Configuration for the layout engine."""

from diagram_layout.config.settings import LAYOUT_SETTINGS, get_all_settings, get_setting

__all__ = [
    "LAYOUT_SETTINGS",
    "get_setting",
    "get_all_settings",
]
