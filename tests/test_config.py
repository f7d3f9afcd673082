import json

import pytest

from lavalamp.config import (
    DEFAULT_TIME_WINDOWS,
    ConfigError,
    Settings,
    TimeWindowTable,
    load_time_windows,
    time_to_minutes,
)


def test_time_to_minutes_parses_short_hours():
    assert time_to_minutes("7:55") == 475
    assert time_to_minutes("23:00") == 1380
    assert time_to_minutes("24:00") is None
    assert time_to_minutes("7.55") is None
    assert time_to_minutes("") is None


def test_table_from_raw():
    table = TimeWindowTable.from_raw({"Mon": [["6:55", "12:00"], ["13:00", "23:00"]]})
    assert table.windows_for("Mon") == ((415, 720), (780, 1380))
    assert table.windows_for("Tue") == ()


@pytest.mark.parametrize(
    "raw",
    [
        {"Monday": [["6:55", "23:00"]]},
        {"Mon": [["6:55"]]},
        {"Mon": [["6:55", "25:00"]]},
        {"Mon": [["23:00", "1:00"]]},
        {"Mon": "6:55-23:00"},
        [["6:55", "23:00"]],
    ],
)
def test_malformed_table_is_config_error(raw):
    with pytest.raises(ConfigError):
        TimeWindowTable.from_raw(raw)


def test_missing_table_file_writes_defaults(tmp_path):
    path = tmp_path / "config" / "time_windows.json"
    table = load_time_windows(path)

    assert json.loads(path.read_text()) == DEFAULT_TIME_WINDOWS
    assert table.windows_for("Tue") == ((835, 1380),)


def test_corrupt_table_file_is_config_error(tmp_path):
    path = tmp_path / "time_windows.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_time_windows(path)


def test_settings_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("LAMP_STATUS_FILE", str(tmp_path / "state" / "lamp.json"))
    monkeypatch.setenv("LAMP_TIME_WINDOWS", str(tmp_path / "windows.json"))
    monkeypatch.setenv("LAMP_REST_TIME", "120")
    monkeypatch.setenv("LAMP_SWITCH", "Desk Lamp")

    settings = Settings()

    assert settings.history_path == tmp_path / "state" / "lamp.json"
    assert settings.history_path.parent.exists()
    assert settings.rest_time == 120
    assert settings.max_on_time == 5 * 60 * 60
    assert settings.switch_name == "Desk Lamp"
    assert settings.time_windows.windows_for("Sun") == ((475, 1380),)


def test_settings_rejects_non_numeric_durations(tmp_path, monkeypatch):
    monkeypatch.setenv("LAMP_TIME_WINDOWS", str(tmp_path / "windows.json"))
    monkeypatch.setenv("LAMP_MAX_TIME", "five hours")
    with pytest.raises(ConfigError):
        Settings()
