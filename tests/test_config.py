from __future__ import annotations

import pytest

from config.config import (
    AppConfig,
    FcmConfig,
    RemindersConfig,
    expand_env_vars,
    get_config,
    init_config,
    load_config,
    validate_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("EVENTPULSE_CONFIG_PATH", "EVENTPULSE_LOG_LEVEL", "EVENT_DEFAULT_TIMEZONE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_expand_env_vars(monkeypatch) -> None:
    monkeypatch.setenv("REMINDER_TZ", "Europe/Berlin")
    data = {
        "tz": "${REMINDER_TZ}",
        "fallback": "${MISSING_VAR_FOR_TEST:UTC}",
        "untouched": "${MISSING_VAR_FOR_TEST}",
        "list": ["${REMINDER_TZ}", 5],
    }

    assert expand_env_vars(data) == {
        "tz": "Europe/Berlin",
        "fallback": "UTC",
        "untouched": "${MISSING_VAR_FOR_TEST}",
        "list": ["Europe/Berlin", 5],
    }


def test_default_config_file_loads() -> None:
    config = load_config()

    assert config.reminders.check_interval_seconds == 60
    assert config.reminders.thresholds == ["24h", "2h", "30m"]
    assert config.reminders.default_timezone == "UTC"
    assert config.fcm.enabled is False
    assert config.fcm.project_id is None
    assert validate_config(config) == []


def test_load_config_from_file(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("EVENT_DEFAULT_TIMEZONE", "America/New_York")
    path = tmp_path / "config.yaml"
    path.write_text(
        "reminders:\n"
        "  check_interval_seconds: 30\n"
        "  max_concurrent_events: 3\n"
        "  default_timezone: \"${EVENT_DEFAULT_TIMEZONE:UTC}\"\n"
        "  thresholds: [2h]\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.reminders.check_interval_seconds == 30
    assert config.reminders.max_concurrent_events == 3
    assert config.reminders.default_timezone == "America/New_York"
    assert config.reminders.thresholds == ["2h"]
    assert config.api.port == 8000


def test_log_level_override(tmp_path, monkeypatch) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: INFO\n", encoding="utf-8")
    monkeypatch.setenv("EVENTPULSE_LOG_LEVEL", "DEBUG")

    assert load_config(path).logging.level == "DEBUG"


def test_config_path_from_environment(tmp_path, monkeypatch) -> None:
    path = tmp_path / "alt.yaml"
    path.write_text("api:\n  port: 9100\n", encoding="utf-8")
    monkeypatch.setenv("EVENTPULSE_CONFIG_PATH", str(path))

    assert load_config().api.port == 9100


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_values_raise(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("reminders:\n  check_interval_seconds: 0\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_validate_config_reports_problems() -> None:
    config = AppConfig(
        reminders=RemindersConfig(thresholds=["24h", "1w"], default_timezone="Mars/Olympus"),
        fcm=FcmConfig(enabled=True),
    )

    errors = validate_config(config)

    assert "Unknown reminder threshold: 1w" in errors
    assert "Unknown default timezone: Mars/Olympus" in errors
    assert "FCM enabled but no credentials or project ID configured" in errors


def test_blank_fcm_values_become_none() -> None:
    config = FcmConfig(project_id="", credentials_path="  ")
    assert config.project_id is None
    assert config.credentials_path is None


def test_init_config_sets_global(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("reminders:\n  max_concurrent_events: 7\n", encoding="utf-8")

    loaded = init_config(path)

    assert get_config() is loaded
    assert get_config().reminders.max_concurrent_events == 7
