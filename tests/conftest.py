from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from batmond.common.enums import BatteryState
from batmond.system.battery import Reading

ReadingFactory = Callable[..., Reading]


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 5, 3, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_reading() -> ReadingFactory:
    """Return a factory for readings with sensible defaults."""

    def _make(
        current: float = 50.0,
        full: float = 100.0,
        rate: float = 10.0,
        state: BatteryState = BatteryState.DISCHARGING,
        source: str = "BAT0",
    ) -> Reading:
        return Reading(source=source, state=state, current=current, full=full, rate=rate)

    return _make
