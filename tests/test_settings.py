from datetime import timedelta
from pathlib import Path

import pytest

from batmond.monitor import AlertThresholds
from batmond.scheduling import PollSettings
from batmond.settings.application import ApplicationSettings, AppPaths
from batmond.settings.user import UserSettings


@pytest.fixture
def no_default_configs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.delenv("BATMOND_CONFIG", raising=False)
    monkeypatch.setattr(UserSettings, "DEFAULT_CONFIG_PATHS", [tmp_path / "config.yaml"])
    return tmp_path / "config.yaml"


def test_defaults() -> None:
    cfg = UserSettings()
    assert cfg.crit_percentage == 5
    assert cfg.crit_minutes_left == 15
    assert cfg.delay == timedelta(seconds=120)
    assert cfg.poll_interval == 5.0
    assert cfg.max_empty_polls == 5
    assert cfg.app_dir == Path("~/.batmond").expanduser()


def test_delay_alias_and_field_name() -> None:
    assert UserSettings(delay=30).notification_delay == 30
    assert UserSettings(notification_delay=45).delay == timedelta(seconds=45)


@pytest.mark.parametrize(
    "field, value",
    [
        ("crit_percentage", -1),
        ("crit_percentage", 101),
        ("crit_minutes_left", -5),
        ("notification_delay", -1),
        ("poll_interval", 0),
        ("max_empty_polls", 0),
        ("icon_size", 0),
        ("sampler", "acpi"),
    ],
)
def test_out_of_range_values_rejected(field: str, value: object) -> None:
    with pytest.raises(ValueError):
        UserSettings(**{field: value})


def test_with_overrides_skips_none() -> None:
    cfg = UserSettings(crit_percentage=10)
    updated = cfg.with_overrides(crit_percentage=None, delay=10, verbose=True)

    assert updated.crit_percentage == 10
    assert updated.notification_delay == 10
    assert updated.verbose is True
    assert cfg.verbose is False


def test_with_overrides_invalid() -> None:
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        UserSettings().with_overrides(crit_percentage=500)


def test_load_without_config_uses_defaults(no_default_configs: Path) -> None:
    assert UserSettings.load() == UserSettings()


def test_load_finds_default_path(no_default_configs: Path) -> None:
    no_default_configs.write_text("crit_minutes_left: 30\n")
    assert UserSettings.load().crit_minutes_left == 30


def test_env_var_config_path(
    monkeypatch: pytest.MonkeyPatch, no_default_configs: Path, tmp_path: Path
) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("crit_percentage: 12\n")
    monkeypatch.setenv("BATMOND_CONFIG", str(custom))

    assert UserSettings.find_config() == custom
    assert UserSettings.load().crit_percentage == 12


def test_env_var_config_path_missing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("BATMOND_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(FileNotFoundError):
        UserSettings.load()


def test_env_interpolation(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BATMOND_TEST_DELAY", "90")
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("delay: ${BATMOND_TEST_DELAY}\n")

    assert UserSettings.load(cfg_file).notification_delay == 90


def test_app_paths() -> None:
    paths = AppPaths.from_app_dir(Path("/var/lib/batmond"), icon_size=32)
    assert paths.lock_file == Path("/var/lib/batmond/.lock")
    assert paths.icon_file == Path("/var/lib/batmond/battery_32.jpg")


def test_application_settings_derives_runtime_values(tmp_path: Path) -> None:
    user = UserSettings(
        app_dir=tmp_path,
        crit_percentage=8,
        crit_minutes_left=25,
        delay=600,
        poll_interval=1.5,
        max_empty_polls=3,
    )
    app = ApplicationSettings(user)

    assert app.paths.app_dir == tmp_path
    assert app.thresholds == AlertThresholds(
        crit_percentage=8,
        crit_minutes_left=25,
        notification_delay=timedelta(seconds=600),
    )
    assert app.polling == PollSettings(interval=1.5, max_empty_polls=3)
