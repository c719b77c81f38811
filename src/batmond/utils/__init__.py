"""Common utility functions and helpers for the batmond package."""

from batmond.utils.file import ensure_directory_exists, read_sysfs_value
from batmond.utils.formatting import format_percentage, format_time_left
from batmond.utils.time import TimeUtils

__all__ = [
    "TimeUtils",
    "ensure_directory_exists",
    "format_percentage",
    "format_time_left",
    "read_sysfs_value",
]
