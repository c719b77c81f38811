"""Alert decision engine.

Turns the periodically sampled, noisy telemetry stream into a throttled
stream of severity-classified alerts. Each reading is checked against the
last accepted reading of the same power source with a fixed rule cascade
(first match wins):

1. invalid telemetry is always suppressed
2. the first reading of a source always alerts
3. a state transition always alerts
4. a non-discharging source stays quiet; a discharging source whose charge
   went up alerts immediately
5. everything below is subject to the notification delay
6. the charge halved since the last alert
7. a critical threshold (percentage or minutes left) was crossed

Severity is classified independently of the rule that fired.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Final

from batmond.common.enums import BatteryState, Severity
from batmond.notify.protocols import AlertSink, deliver
from batmond.system.battery import Reading
from batmond.utils.formatting import format_percentage, format_time_left
from batmond.utils.time import TimeUtils

logger: Final = logging.getLogger(__name__)

HALVING_FACTOR: Final = 0.5


class Reason(Enum):
    """Why a reading was alerted or suppressed."""

    INVALID = "invalid telemetry"
    FIRST_OBSERVATION = "no previous state"
    STATE_CHANGE = "new state"
    NOT_DISCHARGING = "not discharging"
    CHARGE_INCREASED = "charge is higher than last"
    RATE_LIMITED = "notification delay not elapsed"
    HALVED = "half of previous notification charge"
    CRITICAL_LEVEL = "critical threshold crossed"
    NO_CHANGE = "nothing noteworthy"


@dataclass(frozen=True)
class AlertThresholds:
    """Thresholds and throttling for alerts.

    ``notification_delay`` is the minimum spacing between non-urgent
    alerts of the same source.
    """

    crit_percentage: int = 5
    crit_minutes_left: int = 15
    notification_delay: timedelta = timedelta(seconds=120)


@dataclass(frozen=True)
class Suppress:
    """Decision: stay quiet."""

    reason: Reason


@dataclass(frozen=True)
class Alert:
    """Decision: notify the user."""

    source: str
    severity: Severity
    message: str
    reason: Reason

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL


Decision = Alert | Suppress


@dataclass
class SourceState:
    """What the engine remembers about one power source."""

    snapshot: Reading | None = None
    last_alert: datetime | None = None


@dataclass
class MonitorState:
    """All mutable engine memory, one entry per tracked source."""

    sources: dict[str, SourceState] = field(default_factory=dict)

    def for_source(self, source: str) -> SourceState:
        """Return the state of *source*, creating an empty one on first use."""
        return self.sources.setdefault(source, SourceState())


def is_critical(reading: Reading, thresholds: AlertThresholds) -> bool:
    """Return True if a discharging reading crossed a critical threshold."""
    if reading.state is not BatteryState.DISCHARGING:
        return False

    percentage = reading.percentage
    if percentage is not None and percentage * 100 < thresholds.crit_percentage:
        return True

    minutes = reading.minutes_remaining
    return minutes is not None and minutes < thresholds.crit_minutes_left


def classify_severity(reading: Reading, thresholds: AlertThresholds) -> Severity:
    """Severity of an alert for *reading*; charging never escalates."""
    if is_critical(reading, thresholds):
        return Severity.CRITICAL
    return Severity.NORMAL


def compose_message(reading: Reading) -> str:
    """Build the alert text for a valid reading.

    Returns:
        "<state> at <percent>%" followed by a "<time> left" line when the
        state has a meaningful time estimate
    """
    headline = f"{reading.state.value} at {format_percentage(reading.percentage or 0.0)}"
    minutes = reading.minutes_remaining
    if minutes is None:
        return headline
    return f"{headline}\n{format_time_left(minutes)} left"


class BatteryMonitor:
    """Decides when and how loudly to tell the user about their battery.

    The monitor owns a :class:`MonitorState` and an ordered list of sinks.
    :meth:`evaluate` is the decision engine; :meth:`update` runs it over
    a batch of readings and dispatches every alert to all sinks.

    Examples:
        monitor = BatteryMonitor(AlertThresholds(), sinks=[TextSink()])
        alerts = monitor.update(sampler.sample())
    """

    def __init__(
        self,
        thresholds: AlertThresholds | None = None,
        sinks: Iterable[AlertSink] | None = None,
        state: MonitorState | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            thresholds: Alert thresholds (defaults if None)
            sinks: Sinks in delivery order
            state: Existing engine state (empty if None)
        """
        self.thresholds = thresholds or AlertThresholds()
        self.sinks: list[AlertSink] = list(sinks or [])
        self.state = state or MonitorState()

    def add_sink(self, sink: AlertSink) -> None:
        """Register another sink after the existing ones."""
        self.sinks.append(sink)

    def evaluate(self, reading: Reading, now: datetime | None = None) -> Decision:
        """Decide whether *reading* warrants an alert.

        On an alert the reading becomes the source's snapshot and the
        alert time advances to *now*; a suppressed reading leaves the
        state untouched.

        Args:
            reading: Fresh reading of one power source
            now: Evaluation time (current local time if None)

        Returns:
            Alert with severity and message, or Suppress with the reason
        """
        now = now or TimeUtils.now_localized()
        source_state = self.state.for_source(reading.source)

        reason = self._match_rule(reading, source_state, now)
        if isinstance(reason, Suppress):
            logger.debug("%s: suppressed (%s)", reading.source, reason.reason.value)
            return reason

        logger.debug("%s: %s => alert", reading.source, reason.value)
        alert = Alert(
            source=reading.source,
            severity=classify_severity(reading, self.thresholds),
            message=compose_message(reading),
            reason=reason,
        )

        source_state.snapshot = reading
        source_state.last_alert = TimeUtils.latest(source_state.last_alert, now)
        return alert

    def _match_rule(
        self, reading: Reading, source_state: SourceState, now: datetime
    ) -> Reason | Suppress:
        """Walk the rule cascade and return the first matching rule."""
        if not reading.is_valid:
            return Suppress(Reason.INVALID)

        previous = source_state.snapshot
        if previous is None:
            return Reason.FIRST_OBSERVATION

        if reading.state != previous.state:
            return Reason.STATE_CHANGE

        if reading.state is not BatteryState.DISCHARGING:
            return Suppress(Reason.NOT_DISCHARGING)

        if reading.current > previous.current:
            return Reason.CHARGE_INCREASED

        if not TimeUtils.has_elapsed(
            source_state.last_alert, self.thresholds.notification_delay, now
        ):
            return Suppress(Reason.RATE_LIMITED)

        # Both readings are valid here, so percentages are present
        percentage = reading.percentage or 0.0
        previous_percentage = previous.percentage or 0.0
        if percentage < previous_percentage * HALVING_FACTOR:
            return Reason.HALVED

        if is_critical(reading, self.thresholds):
            return Reason.CRITICAL_LEVEL

        return Suppress(Reason.NO_CHANGE)

    def dispatch(self, alert: Alert) -> int:
        """Deliver *alert* to every sink in registration order.

        A failing sink is reported and skipped; it never prevents the
        remaining sinks from receiving the alert.

        Returns:
            Number of sinks that accepted the alert
        """
        delivered = 0
        for sink in self.sinks:
            try:
                deliver(sink, alert.severity, alert.message)
            except Exception as exc:
                logger.warning("Alert sink %s failed: %s", type(sink).__name__, exc)
                continue
            delivered += 1
        return delivered

    def update(self, readings: Iterable[Reading], now: datetime | None = None) -> list[Alert]:
        """Evaluate readings in order and dispatch every resulting alert.

        Args:
            readings: Readings from one poll, in sampler order
            now: Evaluation time shared by the whole batch

        Returns:
            Alerts fired during this update
        """
        now = now or TimeUtils.now_localized()
        alerts: list[Alert] = []
        for reading in readings:
            decision = self.evaluate(reading, now)
            if isinstance(decision, Alert):
                self.dispatch(decision)
                alerts.append(decision)
        return alerts
