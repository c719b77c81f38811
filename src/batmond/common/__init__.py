"""Shared enums for the battery monitor."""

from batmond.common.enums import BatteryState, Severity

__all__ = ["BatteryState", "Severity"]
