"""Battery Monitor CLI application.

This module provides the command-line interface for the battery monitor
daemon, including the polling loop, a one-shot status report and
configuration utilities.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Final

import typer
import yaml
from pydantic import ValidationError

from batmond.controller import BatteryDaemon
from batmond.errors import LockError
from batmond.monitor import classify_severity, compose_message
from batmond.scheduling import Scheduler, StopReason
from batmond.settings.user import UserSettings
from batmond.system.lock import InstanceLock

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="Battery Monitor CLI", add_completion=False)
config_app = typer.Typer(help="Config helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)  # Will be "batmond.cli"

# Options for the main command
CONFIG_OPTION = typer.Option(None, "--config", "-c", exists=True, dir_okay=False)
CRIT_PERCENTAGE_OPTION = typer.Option(
    None, "--crit-percentage", help="Critical notifications below this battery percentage"
)
CRIT_MINUTES_OPTION = typer.Option(
    None, "--crit-minutes-left", help="Critical notifications when less than X minutes left"
)
DELAY_OPTION = typer.Option(
    None, "--delay", help="Minimum delay (in seconds) between notifications"
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose output")
ICON_SIZE_OPTION = typer.Option(None, "--icon-size", help="Icon size")
INTERVAL_OPTION = typer.Option(None, "--interval", help="Seconds between battery polls")
ONCE_OPTION = typer.Option(False, "--once", "-1", help="Run one cycle then exit")
DST_ARGUMENT = typer.Argument(..., help="Output config.yaml")


def _load_settings(config: Path | None, **overrides: Any) -> UserSettings:
    """Load settings and apply CLI overrides, exiting on invalid input."""
    try:
        return UserSettings.load(config).with_overrides(**overrides)
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def run(
    config: Path | None = CONFIG_OPTION,
    crit_percentage: int | None = CRIT_PERCENTAGE_OPTION,
    crit_minutes_left: int | None = CRIT_MINUTES_OPTION,
    delay: int | None = DELAY_OPTION,
    verbose: bool = VERBOSE_OPTION,
    icon_size: int | None = ICON_SIZE_OPTION,
    interval: float | None = INTERVAL_OPTION,
    once: bool = ONCE_OPTION,
) -> None:
    """Run the battery monitor until interrupted or no battery is left."""
    settings = _load_settings(
        config,
        crit_percentage=crit_percentage,
        crit_minutes_left=crit_minutes_left,
        delay=delay,
        verbose=verbose or None,
        icon_size=icon_size,
        poll_interval=interval,
    )
    daemon = BatteryDaemon(settings)

    try:
        daemon.prepare()
    except OSError as exc:
        typer.secho(f"Could not create app-directory: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    try:
        with InstanceLock(daemon.settings.paths.lock_file):
            reason = Scheduler(daemon).run(once=once)
    except LockError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if reason is StopReason.NO_POWER_SOURCE:
        typer.echo("No batteries found, exiting")


@app.command()
def status(config: Path | None = CONFIG_OPTION) -> None:
    """Sample the batteries once and print what the monitor would report."""
    settings = _load_settings(config)
    daemon = BatteryDaemon(settings, sinks=[], configure_logging=False)

    readings = daemon.read_batteries()
    if not readings:
        typer.secho("No batteries found", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    for reading in readings:
        if not reading.is_valid:
            typer.echo(f"{reading.source}: invalid reading ({reading.state.value})")
            continue
        severity = classify_severity(reading, daemon.settings.thresholds)
        message = compose_message(reading).replace("\n", ", ")
        typer.echo(f"{reading.source}: {message} [{severity.value}]")


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("validate")
def validate_config(file: Path):
    """Validate a YAML config file against the schema."""
    try:
        UserSettings.load(file)
        typer.echo("✅ Config valid")
    except RuntimeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@config_app.command("wizard")
def wizard(dst: Path = DST_ARGUMENT):
    """Interactive prompt to create a config file."""
    typer.echo("Interactive config builder - press Enter for defaults.")

    while True:
        data: dict[str, Any] = {
            "crit_percentage": typer.prompt("Critical battery percentage", default="5"),
            "crit_minutes_left": typer.prompt("Critical minutes left", default="15"),
            "delay": typer.prompt("Seconds between notifications", default="120"),
            "icon_size": typer.prompt("Icon size", default="48"),
        }
        try:
            cfg = UserSettings(**data)
            break  # valid → exit loop
        except ValidationError as err:
            typer.secho("\nConfig error(s):", fg=typer.colors.RED, err=True)
            for e in err.errors():
                typer.secho(f"  • {e['loc'][0]} - {e['msg']}", fg=typer.colors.RED, err=True)
            typer.echo("Please re-enter the values.\n")

    dumped = cfg.model_dump(
        mode="json",
        by_alias=True,
        include={"crit_percentage", "crit_minutes_left", "notification_delay", "icon_size"},
    )
    dst.write_text(yaml.safe_dump(dumped, sort_keys=False), encoding="utf-8")
    typer.secho(f"Config written to {dst}", fg=typer.colors.GREEN)


def main() -> None:
    """Console-script entry point."""
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)


# ───────────────────────── module entrypoint ────────────────────────────────
if __name__ == "__main__":
    main()
