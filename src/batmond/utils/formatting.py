"""Text and number formatting utilities."""

from __future__ import annotations


def format_percentage(value: float) -> str:
    """Format value as percentage.

    Args:
        value: Value to format (0-1)

    Returns:
        Formatted percentage string
    """
    return f"{round(value * 100)}%"


def format_time_left(minutes: int) -> str:
    """Format a remaining-time estimate.

    Args:
        minutes: Whole minutes remaining

    Returns:
        "H hour(s), M minute(s)" above one hour, otherwise "M minute(s)"
    """
    if minutes > 60:
        return f"{minutes // 60} hour(s), {minutes % 60} minute(s)"
    return f"{minutes} minute(s)"
