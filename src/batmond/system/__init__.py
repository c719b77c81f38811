# src/batmond/system/__init__.py
"""System module for power-source telemetry and process guards."""

# Re-export commonly used classes for cleaner imports
from batmond.system.battery import (
    PsutilSampler,
    Reading,
    Sampler,
    StaticSampler,
    SysfsSampler,
    create_sampler,
)
from batmond.system.lock import InstanceLock

# Define the public API
__all__ = [
    "InstanceLock",
    "PsutilSampler",
    "Reading",
    "Sampler",
    "StaticSampler",
    "SysfsSampler",
    "create_sampler",
]
