"""Internal application settings derived from user settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from batmond.monitor import AlertThresholds
from batmond.scheduling.models import PollSettings
from batmond.settings.user import UserSettings


@dataclass
class AppPaths:
    """Application file and directory paths.

    Centralizes where the daemon keeps its lock file and the notification
    icon assets (``battery_<size>.jpg``).
    """

    app_dir: Path
    lock_file: Path
    icon_file: Path

    @classmethod
    def from_app_dir(cls, app_dir: Path, icon_size: int = 48) -> AppPaths:
        """Create paths from the application directory."""
        return cls(
            app_dir=app_dir,
            lock_file=app_dir / ".lock",
            icon_file=app_dir / f"battery_{icon_size}.jpg",
        )


class ApplicationSettings:
    """Application settings container.

    Combines user-provided configuration with application defaults:

    - Path configuration (app directory, lock file, icon)
    - Alert thresholds for the decision engine
    - Polling cadence for the scheduler

    Examples:
        user_settings = UserSettings.load()
        app_settings = ApplicationSettings(user_settings)
        monitor = BatteryMonitor(app_settings.thresholds)
    """

    def __init__(
        self,
        user_settings: UserSettings,
        paths: AppPaths | None = None,
        thresholds: AlertThresholds | None = None,
        polling: PollSettings | None = None,
    ):
        """Initialize application settings with configuration sources."""
        self.user = user_settings
        self.paths = paths or AppPaths.from_app_dir(user_settings.app_dir, user_settings.icon_size)
        self.thresholds = thresholds or AlertThresholds(
            crit_percentage=user_settings.crit_percentage,
            crit_minutes_left=user_settings.crit_minutes_left,
            notification_delay=user_settings.delay,
        )
        self.polling = polling or PollSettings(
            interval=user_settings.poll_interval,
            max_empty_polls=user_settings.max_empty_polls,
        )
