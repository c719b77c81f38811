# filepath: src/batmond/controller.py
"""Core controller for the battery monitor daemon."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Final

from batmond.errors import SamplerError
from batmond.monitor import Alert, BatteryMonitor
from batmond.notify.desktop import DesktopNotificationSink
from batmond.notify.protocols import AlertSink
from batmond.notify.text import TextSink
from batmond.settings.application import ApplicationSettings
from batmond.settings.user import UserSettings
from batmond.system.battery import Reading, Sampler, create_sampler
from batmond.utils.file import ensure_directory_exists
from batmond.utils.time import TimeUtils

logger: Final = logging.getLogger(__name__)


class BatteryDaemon:
    """Main controller class for the battery monitor.

    This class wires the daemon together:
    - Configuring logging from the user settings
    - Creating the telemetry sampler
    - Registering the alert sinks (desktop, plus text when verbose)
    - Running one sample-evaluate-dispatch cycle per :meth:`poll`

    All dependencies can be injected, which is how the tests drive it.
    """

    def __init__(
        self,
        config: UserSettings | None = None,
        sampler: Sampler | None = None,
        sinks: Sequence[AlertSink] | None = None,
        monitor: BatteryMonitor | None = None,
        configure_logging: bool = True,
    ):
        """Initialize the daemon controller.

        Args:
            config: User settings (defaults if None)
            sampler: Optional custom telemetry sampler
            sinks: Optional alert sinks replacing the configured ones
            monitor: Optional pre-built decision engine
            configure_logging: Call logging.basicConfig from the settings
        """
        self.config = config or UserSettings()

        if configure_logging:
            logging.basicConfig(
                level=logging.DEBUG if self.config.verbose else logging.INFO,
                format="%(asctime)s [%(levelname)s] %(message)s",
            )

        # Create centralized settings
        self.settings = ApplicationSettings(self.config)

        # Allow dependency injection or create defaults
        self.sampler = sampler or create_sampler(
            self.config.sampler, self.config.power_supply_dir
        )
        self.monitor = monitor or BatteryMonitor(self.settings.thresholds)
        if monitor is None:
            for sink in sinks if sinks is not None else self._default_sinks():
                self.monitor.add_sink(sink)

    def _default_sinks(self) -> list[AlertSink]:
        """Build the sinks selected by the configuration."""
        sinks: list[AlertSink] = []
        if self.config.desktop_notifications:
            sinks.append(DesktopNotificationSink(icon=self.settings.paths.icon_file))
        if self.config.verbose:
            sinks.append(TextSink())
        if not sinks:
            logger.warning("No alert sinks configured → alerts will only be logged")
        return sinks

    def prepare(self) -> None:
        """Create the application directory.

        Raises:
            OSError: If the directory cannot be created
        """
        ensure_directory_exists(self.settings.paths.app_dir)

    def read_batteries(self) -> list[Reading]:
        """Sample every power source, treating sampler failures as empty.

        Returns:
            Readings in sampler order (empty on failure)
        """
        try:
            return self.sampler.sample()
        except SamplerError as exc:
            logger.debug("Battery sampling failed: %s", exc.message)
            return []

    def poll(self, now: datetime | None = None) -> bool:
        """Run one sample-evaluate-dispatch cycle.

        Args:
            now: Evaluation time (current time if None)

        Returns:
            True if at least one reading was found, False otherwise
        """
        readings = self.read_batteries()
        if not readings:
            logger.debug("No batteries found")
            return False

        alerts: list[Alert] = self.monitor.update(readings, now or TimeUtils.now_localized())
        for alert in alerts:
            logger.info(
                "%s alert for %s: %s",
                alert.severity.value,
                alert.source,
                alert.message.replace("\n", ", "),
            )
        return True
