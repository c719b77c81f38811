# src/batmond/notify/protocols.py
from __future__ import annotations

from typing import Protocol, runtime_checkable

from batmond.common.enums import Severity


@runtime_checkable
class AlertSink(Protocol):
    """Protocol defining the interface for alert sinks.

    A sink is anything that can show a battery alert to the user: a
    desktop notification daemon, a terminal, a test recorder. The
    monitor calls :meth:`print` for normal alerts and :meth:`critical`
    for critical ones, and never waits for an acknowledgment.

    Runtime checking allows the daemon to validate sinks supplied by
    callers before registering them.
    """

    def print(self, message: str) -> None:
        """Deliver a normal-severity alert.

        Args:
            message: Alert text, possibly spanning several lines
        """
        ...

    def critical(self, message: str) -> None:
        """Deliver a critical-severity alert.

        Args:
            message: Alert text, possibly spanning several lines
        """
        ...


def deliver(sink: AlertSink, severity: Severity, message: str) -> None:
    """Route *message* to the sink method matching *severity*."""
    if severity is Severity.CRITICAL:
        sink.critical(message)
    else:
        sink.print(message)


class MockSink:
    """Mock implementation of AlertSink for testing."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def print(self, message: str) -> None:
        """Record a normal alert."""
        self.calls.append({"severity": Severity.NORMAL, "message": message})

    def critical(self, message: str) -> None:
        """Record a critical alert."""
        self.calls.append({"severity": Severity.CRITICAL, "message": message})

    @property
    def messages(self) -> list[str]:
        """Messages received so far, in delivery order."""
        return [str(call["message"]) for call in self.calls]

    def reset_call_history(self) -> None:
        """Reset the call history for testing."""
        self.calls = []


class ErrorSimulatingSink(MockSink):
    """Sink mock that can simulate backend failures."""

    def __init__(self, fail_on_methods: list[str] | None = None):
        """Initialize with optional methods that should fail.

        Args:
            fail_on_methods: List of method names that should raise exceptions
        """
        super().__init__()
        self.fail_on_methods = fail_on_methods or []

    def print(self, message: str) -> None:
        """Either record the call or raise an exception based on configuration."""
        if "print" in self.fail_on_methods:
            raise RuntimeError("Simulated notification backend failure")
        super().print(message)

    def critical(self, message: str) -> None:
        """Either record the call or raise an exception based on configuration."""
        if "critical" in self.fail_on_methods:
            raise RuntimeError("Simulated notification backend failure")
        super().critical(message)


def assert_sink_received(
    sink: MockSink,
    expected_message: str | None = None,
    expected_severity: Severity | None = None,
) -> bool:
    """Assert that the last alert a sink received matches.

    Args:
        sink: The mock sink instance
        expected_message: Expected message text (None to skip check)
        expected_severity: Expected severity (None to skip check)

    Returns:
        True if the assertion passes, raises AssertionError otherwise
    """
    assert len(sink.calls) > 0, "Sink was not called"
    last_call = sink.calls[-1]

    if expected_message is not None:
        assert last_call["message"] == expected_message, (
            f"Expected message {expected_message!r}, got {last_call['message']!r}"
        )

    if expected_severity is not None:
        assert last_call["severity"] == expected_severity, (
            f"Expected severity {expected_severity}, got {last_call['severity']}"
        )

    return True
