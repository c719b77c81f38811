"""Power-source telemetry: readings and the samplers that produce them."""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Final, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from batmond.common.enums import BatteryState
from batmond.errors import NoPowerSourceError, SamplerError
from batmond.utils.file import read_sysfs_value

logger: Final = logging.getLogger(__name__)

# sysfs reports energy in µWh / µW and charge in µAh / µA
SYSFS_SCALE: Final = 1_000_000.0

SamplerKind = Literal["auto", "sysfs", "psutil"]


class Reading(BaseModel):
    """One sampled snapshot of a power source.

    Readings are frozen: the monitor keeps the last accepted one as its
    snapshot, and a value copy guarantees that nothing the sampler does
    afterwards can change what was stored.

    Units of ``current``, ``full`` and ``rate`` are whatever the backend
    reports (Wh, Ah or percent points) but are consistent per source.
    ``rate`` is the magnitude of the charge/discharge rate per hour;
    its sign is ignored and the direction comes from ``state``.
    """

    model_config = ConfigDict(frozen=True)

    source: str = "BAT0"
    state: BatteryState
    current: float
    full: float
    rate: float

    @property
    def percentage(self) -> float | None:
        """Charge as a fraction of capacity, or None without a capacity."""
        if self.full <= 0:
            return None
        return self.current / self.full

    @property
    def minutes_remaining(self) -> int | None:
        """Whole minutes until empty (discharging) or full (charging).

        Returns None for other states and whenever the rate makes the
        estimate meaningless.
        """
        rate = abs(self.rate)
        if self.state.is_other or rate == 0:
            return None

        if self.state is BatteryState.DISCHARGING:
            minutes = self.current * 60 / rate
        else:
            minutes = (self.full - self.current) * 60 / rate

        if not math.isfinite(minutes):
            return None
        return int(minutes)

    @property
    def is_valid(self) -> bool:
        """Return True if the reading describes a physically possible state."""
        percentage = self.percentage
        if percentage is None or not 0.0 <= percentage <= 1.0:
            return False
        if not self.state.is_other and self.minutes_remaining is None:
            return False
        return True


@runtime_checkable
class Sampler(Protocol):
    """Protocol for power-source telemetry backends."""

    def sample(self) -> list[Reading]:
        """Return the current reading of every power source.

        Raises:
            SamplerError: If telemetry is temporarily unavailable
        """
        ...


class SysfsSampler:
    """Linux power-supply class reader (/sys/class/power_supply/BAT*)."""

    def __init__(self, root: Path = Path("/sys/class/power_supply")) -> None:
        """Initialize with the power-supply directory.

        Args:
            root: Directory containing one subdirectory per power supply
        """
        self.root = root

    def sample(self) -> list[Reading]:
        if not self.root.is_dir():
            raise NoPowerSourceError(f"Power supply directory not found: {self.root}")

        readings: list[Reading] = []
        for supply in sorted(self.root.iterdir()):
            try:
                reading = self._read_supply(supply)
            except (OSError, ValueError) as exc:
                raise SamplerError(f"Unable to read {supply.name}: {exc}", exc) from exc
            if reading is not None:
                readings.append(reading)
        return readings

    def _read_supply(self, supply: Path) -> Reading | None:
        """Build a reading from one supply directory, or None if not a battery."""
        kind = read_sysfs_value(supply / "type")
        if kind is None:
            if not supply.name.startswith("BAT"):
                return None
        elif kind != "Battery":
            return None

        status = read_sysfs_value(supply / "status") or "Unknown"

        # Energy counters are preferred; older firmware only exposes charge
        for now_attr, full_attr in (
            ("energy_now", "energy_full"),
            ("charge_now", "charge_full"),
        ):
            now_raw = read_sysfs_value(supply / now_attr)
            full_raw = read_sysfs_value(supply / full_attr)
            if now_raw is None or full_raw is None:
                continue
            return Reading(
                source=supply.name,
                state=BatteryState.parse(status),
                current=float(now_raw) / SYSFS_SCALE,
                full=float(full_raw) / SYSFS_SCALE,
                rate=self._read_rate(supply, energy=now_attr == "energy_now"),
            )

        logger.debug("%s exposes no charge counters, skipping", supply.name)
        return None

    @staticmethod
    def _read_rate(supply: Path, energy: bool) -> float:
        """Rate in the unit matching the counters (W for energy, A for charge)."""
        current_raw = read_sysfs_value(supply / "current_now")
        if not energy:
            return abs(float(current_raw or "0")) / SYSFS_SCALE

        power_raw = read_sysfs_value(supply / "power_now")
        if power_raw is not None:
            return abs(float(power_raw)) / SYSFS_SCALE

        # Some drivers report energy but only current and voltage (µA, µV)
        voltage_raw = read_sysfs_value(supply / "voltage_now")
        if current_raw is None or voltage_raw is None:
            return 0.0
        return abs(float(current_raw) * float(voltage_raw)) / SYSFS_SCALE**2


class PsutilSampler:
    """Portable sampler built on ``psutil.sensors_battery``.

    psutil only reports a percentage and a seconds-left estimate, so the
    reading uses percent points as its unit (``full`` is always 100) and
    derives the hourly rate from the estimate. While plugged in psutil
    usually gives no estimate; such readings are reported as Unknown so
    that plugging in the charger still shows up as a state change.
    """

    SOURCE_NAME: Final = "battery"

    def sample(self) -> list[Reading]:
        import psutil

        try:
            battery = psutil.sensors_battery()
        except (OSError, RuntimeError) as exc:
            raise SamplerError(f"psutil battery query failed: {exc}", exc) from exc

        if battery is None:
            return []

        percent = float(battery.percent)
        secs = battery.secsleft
        has_estimate = secs not in (
            psutil.POWER_TIME_UNLIMITED,
            psutil.POWER_TIME_UNKNOWN,
        ) and secs > 0

        if battery.power_plugged:
            if percent >= 100:
                state = BatteryState.FULL
            elif has_estimate:
                state = BatteryState.CHARGING
            else:
                # No time-to-full: report a state that needs no rate
                state = BatteryState.UNKNOWN
            remaining = 100 - percent
        else:
            state = BatteryState.DISCHARGING
            remaining = percent

        rate = remaining * 3600 / secs if has_estimate else 0.0
        return [
            Reading(
                source=self.SOURCE_NAME,
                state=state,
                current=percent,
                full=100.0,
                rate=rate,
            )
        ]


class StaticSampler:
    """Sampler replaying canned batches, for tests and dry runs.

    Each call to :meth:`sample` consumes one batch. A batch that is an
    exception instance is raised instead of returned. Once the batches
    run out every poll comes back empty.
    """

    def __init__(self, batches: Iterable[Sequence[Reading] | Exception] = ()) -> None:
        self._batches: deque[Sequence[Reading] | Exception] = deque(batches)
        self.calls = 0

    def push(self, batch: Sequence[Reading] | Exception) -> None:
        """Queue another batch."""
        self._batches.append(batch)

    def sample(self) -> list[Reading]:
        self.calls += 1
        if not self._batches:
            return []
        batch = self._batches.popleft()
        if isinstance(batch, Exception):
            raise batch
        return list(batch)


def create_sampler(
    kind: SamplerKind = "auto",
    power_supply_dir: Path = Path("/sys/class/power_supply"),
) -> Sampler:
    """Create a sampler for the configured backend.

    Args:
        kind: "sysfs", "psutil" or "auto" (sysfs when the directory exists)
        power_supply_dir: Root of the sysfs power-supply class

    Returns:
        A Sampler implementation
    """
    if kind == "psutil":
        return PsutilSampler()
    if kind == "sysfs" or power_supply_dir.is_dir():
        return SysfsSampler(power_supply_dir)
    logger.debug("%s missing, falling back to psutil", power_supply_dir)
    return PsutilSampler()
