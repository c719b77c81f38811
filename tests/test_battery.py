from collections import namedtuple
from datetime import datetime, timedelta, timezone
from pathlib import Path

import psutil
import pytest

from batmond.common.enums import BatteryState, Severity
from batmond.errors import NoPowerSourceError, SamplerError
from batmond.monitor import BatteryMonitor, Reason
from batmond.system.battery import (
    PsutilSampler,
    Reading,
    StaticSampler,
    SysfsSampler,
    create_sampler,
)

FakeBattery = namedtuple("FakeBattery", ["percent", "secsleft", "power_plugged"])


def write_supply(root: Path, name: str, **attrs: str) -> Path:
    supply = root / name
    supply.mkdir(parents=True)
    for attr, value in attrs.items():
        (supply / attr).write_text(f"{value}\n")
    return supply


# ── Reading ──────────────────────────────────────────────────────────────────
def test_reading_derived_values_discharging() -> None:
    reading = Reading(state=BatteryState.DISCHARGING, current=30.0, full=60.0, rate=15.0)
    assert reading.percentage == 0.5
    assert reading.minutes_remaining == 120
    assert reading.is_valid is True


def test_reading_derived_values_charging() -> None:
    reading = Reading(state=BatteryState.CHARGING, current=30.0, full=60.0, rate=-15.0)
    # Sign of the rate is ignored, minutes count up to full
    assert reading.minutes_remaining == 120


def test_reading_minutes_truncate() -> None:
    reading = Reading(state=BatteryState.DISCHARGING, current=10.0, full=100.0, rate=7.0)
    assert reading.minutes_remaining == 85  # 85.71 minutes


@pytest.mark.parametrize(
    "state, current, full, rate, valid",
    [
        (BatteryState.DISCHARGING, 50.0, 100.0, 10.0, True),
        (BatteryState.DISCHARGING, 50.0, 100.0, 0.0, False),  # no estimate
        (BatteryState.DISCHARGING, 101.0, 100.0, 10.0, False),
        (BatteryState.CHARGING, -1.0, 100.0, 10.0, False),
        (BatteryState.FULL, 100.0, 100.0, 0.0, True),  # other states need no rate
        (BatteryState.UNKNOWN, 10.0, 0.0, 0.0, False),
        (BatteryState.DISCHARGING, 0.0, 100.0, 10.0, True),
    ],
)
def test_reading_validity(
    state: BatteryState, current: float, full: float, rate: float, valid: bool
) -> None:
    reading = Reading(state=state, current=current, full=full, rate=rate)
    assert reading.is_valid is valid


def test_other_states_have_no_estimate() -> None:
    reading = Reading(state=BatteryState.IDLE, current=80.0, full=100.0, rate=5.0)
    assert reading.minutes_remaining is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Discharging", BatteryState.DISCHARGING),
        ("charging\n", BatteryState.CHARGING),
        ("Full", BatteryState.FULL),
        ("Not charging", BatteryState.IDLE),
        ("Bogus", BatteryState.UNKNOWN),
    ],
)
def test_battery_state_parse(raw: str, expected: BatteryState) -> None:
    assert BatteryState.parse(raw) is expected


# ── SysfsSampler ─────────────────────────────────────────────────────────────
def test_sysfs_energy_counters(tmp_path: Path) -> None:
    write_supply(
        tmp_path,
        "BAT0",
        type="Battery",
        status="Discharging",
        energy_now="30000000",
        energy_full="60000000",
        power_now="15000000",
    )

    readings = SysfsSampler(tmp_path).sample()

    assert readings == [
        Reading(
            source="BAT0",
            state=BatteryState.DISCHARGING,
            current=30.0,
            full=60.0,
            rate=15.0,
        )
    ]


def test_sysfs_charge_counters_and_order(tmp_path: Path) -> None:
    write_supply(
        tmp_path,
        "BAT1",
        type="Battery",
        status="Charging",
        charge_now="1000000",
        charge_full="4000000",
        current_now="-500000",
    )
    write_supply(
        tmp_path,
        "BAT0",
        type="Battery",
        status="Full",
        energy_now="50000000",
        energy_full="50000000",
    )

    readings = SysfsSampler(tmp_path).sample()

    assert [r.source for r in readings] == ["BAT0", "BAT1"]
    assert readings[0].state is BatteryState.FULL
    assert readings[0].rate == 0.0
    assert readings[1].current == 1.0
    assert readings[1].rate == 0.5
    assert readings[1].minutes_remaining == 360


def test_sysfs_energy_rate_from_current_and_voltage(tmp_path: Path) -> None:
    write_supply(
        tmp_path,
        "BAT0",
        type="Battery",
        status="Discharging",
        energy_now="24000000",
        energy_full="48000000",
        current_now="1500000",
        voltage_now="12000000",
    )

    [reading] = SysfsSampler(tmp_path).sample()

    # 1.5 A at 12 V drains 18 W from 24 Wh
    assert reading.rate == 18.0
    assert reading.minutes_remaining == 80
    assert reading.is_valid


def test_sysfs_skips_non_batteries(tmp_path: Path) -> None:
    write_supply(tmp_path, "AC", type="Mains", online="1")
    write_supply(tmp_path, "hid-mouse", type="Battery", status="Discharging", capacity="40")

    assert SysfsSampler(tmp_path).sample() == []


def test_sysfs_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(NoPowerSourceError):
        SysfsSampler(tmp_path / "nope").sample()


def test_sysfs_unparseable_value(tmp_path: Path) -> None:
    write_supply(
        tmp_path,
        "BAT0",
        type="Battery",
        status="Discharging",
        energy_now="garbage",
        energy_full="60000000",
    )

    with pytest.raises(SamplerError) as excinfo:
        SysfsSampler(tmp_path).sample()

    assert "BAT0" in str(excinfo.value)
    assert isinstance(excinfo.value.original_error, ValueError)


# ── PsutilSampler ────────────────────────────────────────────────────────────
def test_psutil_discharging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(psutil, "sensors_battery", lambda: FakeBattery(50, 3600, False))

    [reading] = PsutilSampler().sample()

    assert reading.state is BatteryState.DISCHARGING
    assert reading.percentage == 0.5
    assert reading.minutes_remaining == 60


def test_psutil_plugging_in_alerts(monkeypatch: pytest.MonkeyPatch) -> None:
    now = datetime(2025, 5, 3, 14, 0, tzinfo=timezone.utc)
    monitor = BatteryMonitor()
    sampler = PsutilSampler()

    monkeypatch.setattr(psutil, "sensors_battery", lambda: FakeBattery(60, 3600, False))
    monitor.update(sampler.sample(), now)

    monkeypatch.setattr(
        psutil,
        "sensors_battery",
        lambda: FakeBattery(61, psutil.POWER_TIME_UNLIMITED, True),
    )
    [alert] = monitor.update(sampler.sample(), now + timedelta(seconds=5))

    assert alert.reason is Reason.STATE_CHANGE
    assert alert.message == "Unknown at 61%"
    assert alert.severity is Severity.NORMAL


def test_psutil_charging_with_estimate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(psutil, "sensors_battery", lambda: FakeBattery(40, 1800, True))

    [reading] = PsutilSampler().sample()

    assert reading.state is BatteryState.CHARGING
    assert reading.minutes_remaining == 30
    assert reading.is_valid


def test_psutil_full(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        psutil,
        "sensors_battery",
        lambda: FakeBattery(100, psutil.POWER_TIME_UNLIMITED, True),
    )

    [reading] = PsutilSampler().sample()

    assert reading.state is BatteryState.FULL
    assert reading.is_valid


def test_psutil_no_battery(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(psutil, "sensors_battery", lambda: None)
    assert PsutilSampler().sample() == []


# ── factory and static sampler ───────────────────────────────────────────────
def test_create_sampler_prefers_sysfs(tmp_path: Path) -> None:
    sampler = create_sampler("auto", tmp_path)
    assert isinstance(sampler, SysfsSampler)
    assert sampler.root == tmp_path


def test_create_sampler_falls_back_to_psutil(tmp_path: Path) -> None:
    assert isinstance(create_sampler("auto", tmp_path / "missing"), PsutilSampler)
    assert isinstance(create_sampler("psutil", tmp_path), PsutilSampler)
    assert isinstance(create_sampler("sysfs", tmp_path / "missing"), SysfsSampler)


def test_static_sampler_replays_batches() -> None:
    reading = Reading(state=BatteryState.FULL, current=1.0, full=1.0, rate=0.0)
    sampler = StaticSampler([[reading], SamplerError("flaky")])

    assert sampler.sample() == [reading]
    with pytest.raises(SamplerError):
        sampler.sample()
    assert sampler.sample() == []
    assert sampler.calls == 3
