from enum import Enum


class BatteryState(Enum):
    """Operating state of a power source.

    Values are the human-readable names used in alert messages. Only
    CHARGING and DISCHARGING carry a meaningful time-remaining estimate;
    every other state is treated as "other" by the decision engine.
    """

    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    FULL = "Full"
    EMPTY = "Empty"
    IDLE = "Not charging"
    UNKNOWN = "Unknown"

    @property
    def is_other(self) -> bool:
        """Return True for states without a charge direction."""
        return self not in (BatteryState.CHARGING, BatteryState.DISCHARGING)

    @classmethod
    def parse(cls, raw: str) -> "BatteryState":
        """Map a sysfs/psutil status string onto a state (case-insensitive)."""
        value = raw.strip().lower()
        for state in cls:
            if state.value.lower() == value:
                return state
        return cls.UNKNOWN


class Severity(Enum):
    """Alert severity levels understood by every sink."""

    NORMAL = "normal"
    CRITICAL = "critical"
