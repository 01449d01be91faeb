"""
Layout constants with environment overrides.

Every numeric constant the engine relies on (paddings, group insets,
default spacing) lives in one table so hosts can tune the engine without
code changes. Values are read from the environment once, at import time.

Usage:
    from diagram_layout.config.settings import get_setting

    padding = get_setting('group_padding')

Environment Variables:
    DIAGRAM_LAYOUT_ROOT_PADDING=80     - x of the leftmost hierarchy node
    DIAGRAM_LAYOUT_PADDING=12          - margin around a laid out frame
    DIAGRAM_LAYOUT_GROUP_PADDING=24    - inner padding of group containers
    DIAGRAM_LAYOUT_GROUP_HEADER=32     - space reserved for the group label
    DIAGRAM_LAYOUT_GROUP_SPACING_X=40  - sibling spacing inside groups
    DIAGRAM_LAYOUT_GROUP_SPACING_Y=32  - rank spacing inside groups
    DIAGRAM_LAYOUT_SPACING_X=80        - default sibling spacing
    DIAGRAM_LAYOUT_SPACING_Y=60        - default rank spacing
    DIAGRAM_LAYOUT_FORCE_SEED=42       - seed for force-directed placement
"""

import logging
import os
from typing import Dict

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


LAYOUT_SETTINGS: Dict[str, float] = {
    'root_left_padding': _env_float('DIAGRAM_LAYOUT_ROOT_PADDING', 80.0),
    'layout_padding': _env_float('DIAGRAM_LAYOUT_PADDING', 12.0),
    'group_padding': _env_float('DIAGRAM_LAYOUT_GROUP_PADDING', 24.0),
    'group_header_inset': _env_float('DIAGRAM_LAYOUT_GROUP_HEADER', 32.0),
    'group_child_spacing_x': _env_float('DIAGRAM_LAYOUT_GROUP_SPACING_X', 40.0),
    'group_child_spacing_y': _env_float('DIAGRAM_LAYOUT_GROUP_SPACING_Y', 32.0),
    'default_spacing_x': _env_float('DIAGRAM_LAYOUT_SPACING_X', 80.0),
    'default_spacing_y': _env_float('DIAGRAM_LAYOUT_SPACING_Y', 60.0),
    'force_seed': _env_float('DIAGRAM_LAYOUT_FORCE_SEED', 42.0),
}


def get_setting(name: str) -> float:
    """
    Look up a layout constant.

    Args:
        name: Setting name (e.g., 'group_padding')

    Returns:
        The configured value

    Raises:
        KeyError: If setting name is not recognized

    Example:
        >>> get_setting('root_left_padding')
        80.0
    """
    if name not in LAYOUT_SETTINGS:
        available = ', '.join(LAYOUT_SETTINGS.keys())
        raise KeyError(
            f"Unknown layout setting: '{name}'. "
            f"Available settings: {available}"
        )

    return LAYOUT_SETTINGS[name]


def get_all_settings() -> Dict[str, float]:
    """
    Get all layout settings and their current values.

    Returns:
        Copy of the settings table
    """
    return LAYOUT_SETTINGS.copy()
