"""User-configurable settings loaded from config.yaml."""

from __future__ import annotations

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, ClassVar, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Load environment variables from .env file(s)
load_dotenv()


def _interpolate_env(content: str) -> str:
    return re.sub(r"\$\{(\w+)\}", lambda m: os.getenv(m.group(1), ""), content)


class UserSettings(BaseModel):
    """User settings for alert thresholds, polling and notification output.

    These values can be set in config.yaml and overridden by command-line
    flags. Every field has a default, so the daemon also runs without a
    configuration file.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Default search paths for configuration
    DEFAULT_CONFIG_PATHS: ClassVar[list[Path]] = [
        Path("config.yaml"),
        Path("~/.config/batmond/config.yaml").expanduser(),
        Path("/etc/batmond/config.yaml"),
    ]

    # Alert thresholds
    crit_percentage: int = Field(
        5, ge=0, le=100, description="Critical notifications below this battery percentage"
    )
    crit_minutes_left: int = Field(
        15, ge=0, description="Critical notifications when less than X minutes left"
    )
    notification_delay: int = Field(
        120,
        ge=0,
        alias="delay",
        description="Minimum delay (in seconds) between notifications",
    )

    # Polling
    poll_interval: float = Field(5.0, gt=0, description="Seconds between battery polls")
    max_empty_polls: int = Field(
        5,
        ge=1,
        description="Consecutive polls without a battery before the daemon stops",
    )
    sampler: Literal["auto", "sysfs", "psutil"] = "auto"
    power_supply_dir: Path = Field(
        Path("/sys/class/power_supply"), description="Linux power-supply class directory"
    )

    # Output
    verbose: bool = Field(False, description="Verbose output and a plain-text alert sink")
    desktop_notifications: bool = Field(True, description="Send desktop notifications")
    icon_size: int = Field(48, gt=0, description="Notification icon size")
    app_dir: Path = Field(
        Path("~/.batmond"), description="Directory for the lock file and icon assets"
    )

    # ---- validators ----
    @field_validator("app_dir", "power_supply_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    # ---- convenience methods ----
    @property
    def delay(self) -> timedelta:
        """Notification delay as a timedelta."""
        return timedelta(seconds=self.notification_delay)

    def with_overrides(self, **overrides: Any) -> UserSettings:
        """Return a copy with every non-None override applied and validated.

        Args:
            **overrides: Field names (or aliases) mapped to new values

        Raises:
            RuntimeError: If an override is invalid
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            data["notification_delay" if key == "delay" else key] = value
        try:
            return type(self).model_validate(data)
        except ValidationError as err:
            raise RuntimeError(f"Invalid configuration:\n{err}") from err

    @classmethod
    def find_config(cls) -> Path | None:
        """Locate a configuration file.

        Returns:
            Path from BATMOND_CONFIG or the first existing default path,
            None if there is none

        Raises:
            FileNotFoundError: If BATMOND_CONFIG points to a missing file
        """
        env_path = os.environ.get("BATMOND_CONFIG")
        if env_path:
            path = Path(env_path)
            if not path.exists():
                raise FileNotFoundError(f"Config file from BATMOND_CONFIG not found: {path}")
            return path

        for default_path in cls.DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                return default_path
        return None

    @classmethod
    def load(cls, path: Path | None = None) -> UserSettings:
        """Load configuration from a YAML file.

        Args:
            path: Path to config file (optional, searches default locations
                if None and falls back to defaults when nothing is found)

        Returns:
            Validated UserSettings object

        Raises:
            FileNotFoundError: If BATMOND_CONFIG names a missing file
            RuntimeError: If the config file cannot be parsed or is invalid
        """
        if path is None:
            path = cls.find_config()
            if path is None:
                return cls()

        # Load and parse config
        import yaml  # local import to avoid hard dep for callers

        try:
            raw = _interpolate_env(path.read_text(encoding="utf-8"))
            data = yaml.safe_load(raw) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise RuntimeError(f"Unable to read config YAML: {exc}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as err:
            raise RuntimeError(f"Invalid configuration:\n{err}") from err
