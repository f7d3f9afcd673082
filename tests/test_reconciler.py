import pytest

from lavalamp.repositories import HistoryLog
from lavalamp.schemas import HistoryEntry, HistoryMode
from lavalamp.services.reconciler import ManualChangeReconciler, estimate_manual_time

NOW = 1_700_000_000
DELTA = 300


def _log(ts, is_on):
    return HistoryLog([HistoryEntry(timestamp=ts, is_on=is_on, mode=HistoryMode.WATCH)])


def test_estimate_without_history_uses_delta():
    assert estimate_manual_time(HistoryLog(), NOW, DELTA) == NOW - DELTA


def test_estimate_uses_delta_when_after_last_entry():
    assert estimate_manual_time(_log(NOW - 1000, True), NOW, DELTA) == NOW - DELTA


def test_estimate_falls_back_to_midpoint():
    assert estimate_manual_time(_log(NOW - 100, True), NOW, DELTA) == NOW - 50
    assert estimate_manual_time(_log(NOW - 101, True), NOW, DELTA) == NOW - 50


@pytest.mark.parametrize("age", [1, 2, 3, 299, 300, 301, 10_000])
def test_estimate_lies_between_last_entry_and_now(age):
    last = NOW - age
    estimated = estimate_manual_time(_log(last, False), NOW, DELTA)
    assert last < estimated <= NOW


def test_estimate_never_predates_last_entry_when_clock_stalls():
    assert estimate_manual_time(_log(NOW, False), NOW, DELTA) == NOW


def test_reconcile_noop_when_state_matches():
    log = _log(NOW - 1000, True)
    assert ManualChangeReconciler(DELTA).reconcile(log, True, NOW) is None
    assert len(log) == 1


def test_reconcile_noop_on_empty_history():
    log = HistoryLog()
    assert ManualChangeReconciler(DELTA).reconcile(log, True, NOW) is None
    assert len(log) == 0


def test_reconcile_appends_manual_entry():
    log = _log(NOW - 1000, True)

    entry = ManualChangeReconciler(DELTA).reconcile(log, False, NOW)

    assert entry == HistoryEntry(timestamp=NOW - DELTA, is_on=False, mode=HistoryMode.MANUAL)
    assert log.last_entry() is entry
