"""Data models for the polling loop."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class PollSettings:
    """Tick interval and empty-poll budget."""

    interval: float = 5.0
    max_empty_polls: int = 5


class StopReason(Enum):
    """Why the polling loop returned."""

    STOPPED = "stop requested"
    NO_POWER_SOURCE = "no power source found"
    ONCE = "single cycle completed"
