"""Exception classes for the battery monitor daemon.

This module defines the hierarchy of errors raised by the telemetry
samplers, the alert sinks and the single-instance guard.
"""

from __future__ import annotations

from pathlib import Path


class BatmondError(Exception):
    """Base class for all battery monitor errors."""


class SamplerError(BatmondError):
    """Telemetry could not be read during a poll.

    Raised when a power-supply backend is temporarily unavailable or
    returns data that cannot be parsed. The daemon treats it as an
    empty poll, never as a fatal condition.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            original_error: The underlying exception, if any
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NoPowerSourceError(SamplerError):
    """Raised when a backend finds no battery at all."""


class SinkError(BatmondError):
    """Raised when an alert sink cannot deliver a message."""

    def __init__(self, sink: str, message: str) -> None:
        super().__init__(f"{sink}: {message}")
        self.sink = sink
        self.message = message


class LockError(BatmondError):
    """Raised when the single-instance lock cannot be acquired."""

    def __init__(self, path: Path, message: str, pid: int | None = None) -> None:
        """Initialize the exception.

        Args:
            path: Lock file path
            message: Why the lock could not be taken
            pid: Process id of the current holder, when known
        """
        super().__init__(f"Could not acquire lockfile ({path}): {message}")
        self.path = path
        self.message = message
        self.pid = pid

    @property
    def is_held(self) -> bool:
        """Return True if another live process owns the lock."""
        return self.pid is not None
