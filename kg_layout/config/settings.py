"""
Runtime settings for the layout engine.

Settings are read once from environment variables at import time, so
deployments can tune limits without code changes.

Usage:
    from kg_layout.config.settings import get_setting

    timeout = get_setting('layout_timeout_seconds')

Environment Variables:
    KG_LAYOUT_TIMEOUT=30           - Wall-clock budget per layout request (seconds)
    KG_LAYOUT_LARGE_THRESHOLD=5000 - Node count above which the large-graph path is used
    KG_LAYOUT_WIDTH=800            - Default target width
    KG_LAYOUT_HEIGHT=600           - Default target height
    KG_LAYOUT_MIN_DISTANCE=0       - Minimum node separation after fitting (0 disables)
"""

import logging
import os
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


def _env(name: str, default: Any, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r} (using {default!r})")
        return default


SETTINGS: Dict[str, Any] = {
    'layout_timeout_seconds': _env('KG_LAYOUT_TIMEOUT', 30.0, float),
    'very_large_graph_threshold': _env('KG_LAYOUT_LARGE_THRESHOLD', 5000, int),
    'default_width': _env('KG_LAYOUT_WIDTH', 800.0, float),
    'default_height': _env('KG_LAYOUT_HEIGHT', 600.0, float),
    'min_distance': _env('KG_LAYOUT_MIN_DISTANCE', 0.0, float),
}


def get_setting(name: str) -> Any:
    """
    Get a setting value.

    Args:
        name: Setting name (e.g., 'layout_timeout_seconds')

    Returns:
        Current value

    Raises:
        KeyError: If setting name is not recognized

    Example:
        >>> get_setting('very_large_graph_threshold')
        5000
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    return SETTINGS[name]


def get_all_settings() -> Dict[str, Any]:
    """Get a copy of all settings and their current values."""
    return SETTINGS.copy()


def set_setting(name: str, value: Any) -> None:
    """
    Programmatically override a setting (for testing only).

    Args:
        name: Setting name
        value: New value

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if name not in SETTINGS:
        available = ', '.join(SETTINGS.keys())
        raise KeyError(
            f"Unknown setting: '{name}'. "
            f"Available settings: {available}"
        )

    SETTINGS[name] = value
