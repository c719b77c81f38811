# src/batmond/utils/time.py
"""Time and date handling utilities."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


class TimeUtils:
    """Time-related utility functions.

    Centralized utilities for working with dates and times:
    - Current time retrieval with proper timezone handling
    - Deadline arithmetic for the notification delay
    """

    @staticmethod
    def now_localized() -> datetime:
        """Get current datetime with local timezone.

        Returns:
            Current datetime with local timezone
        """
        return datetime.now(UTC).astimezone()

    @staticmethod
    def has_elapsed(since: datetime | None, delay: timedelta, now: datetime) -> bool:
        """Return True once *delay* has passed since *since*.

        A missing start time counts as elapsed.
        """
        if since is None:
            return True
        return now >= since + delay

    @staticmethod
    def latest(current: datetime | None, candidate: datetime) -> datetime:
        """Return the later of two timestamps, ignoring a missing one."""
        if current is None or candidate > current:
            return candidate
        return current
