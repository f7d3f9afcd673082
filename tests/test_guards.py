from datetime import datetime

import pytest

from lavalamp.config import TimeWindowTable
from lavalamp.repositories import HistoryLog
from lavalamp.schemas import HistoryEntry, HistoryMode
from lavalamp.services.event_service import EventService
from lavalamp.services.guards import WindowPolicy, is_on_too_long, on_duration

MAX_ON = 5 * 3600
REST = 3600
NOW = 1_700_000_000


def _local(hour, minute, day=7):
    # 2024-01-07 is a Sunday
    return datetime(2024, 1, day, hour, minute).timestamp()


@pytest.fixture
def policy():
    return WindowPolicy(TimeWindowTable.from_raw({"Sun": [["7:55", "23:00"]]}))


@pytest.mark.parametrize(
    "hour, minute, expected",
    [
        (7, 54, False),
        (7, 55, True),
        (12, 0, True),
        (23, 0, True),
        (23, 1, False),
    ],
)
def test_window_edges_are_inclusive(policy, hour, minute, expected):
    assert policy.is_within_allowed_window(_local(hour, minute)) is expected


def test_day_without_windows_is_closed(policy):
    # 2024-01-08 is a Monday, which has no windows configured
    assert policy.is_within_allowed_window(_local(12, 0, day=8)) is False


def test_several_windows_per_day():
    policy = WindowPolicy(
        TimeWindowTable.from_raw({"Sun": [["6:00", "8:00"], ["18:00", "22:00"]]})
    )
    assert policy.is_within_allowed_window(_local(7, 0))
    assert not policy.is_within_allowed_window(_local(12, 0))
    assert policy.is_within_allowed_window(_local(18, 0))


def _log(*entries):
    return HistoryLog(
        HistoryEntry(timestamp=ts, is_on=on, mode=HistoryMode.NOTIFY) for ts, on in entries
    )


def test_empty_history_is_never_too_long():
    assert is_on_too_long(HistoryLog(), NOW, MAX_ON, REST) is False


def test_on_exactly_max_time_is_too_long(tmp_path):
    events = EventService(tmp_path / "lamp.log")
    log = _log((NOW - MAX_ON, True))

    assert is_on_too_long(log, NOW, MAX_ON, REST, events) is True
    assert "Lamp was on for 18000 seconds" in (tmp_path / "lamp.log").read_text()


def test_one_second_short_is_fine():
    assert is_on_too_long(_log((NOW - MAX_ON + 1, True)), NOW, MAX_ON, REST) is False


def test_off_periods_are_not_counted():
    log = _log(
        (NOW - 6 * 3600, True),
        (NOW - 4 * 3600, False),
        (NOW - 2 * 3600, True),
    )
    assert on_duration(log, NOW, MAX_ON + REST) == 4 * 3600
    assert is_on_too_long(log, NOW, MAX_ON, REST) is False


def test_on_period_starting_before_horizon_counts_fully():
    # Single long on-period that began well before now - max - rest
    log = _log((NOW - 10 * 3600, False), (NOW - 8 * 3600, True))
    assert on_duration(log, NOW, MAX_ON + REST) == 8 * 3600


def test_entries_behind_the_horizon_are_ignored():
    log = _log(
        (NOW - 20 * 3600, True),
        (NOW - 7 * 3600, False),
        (NOW - 3600, True),
    )
    assert on_duration(log, NOW, MAX_ON + REST) == 3600
