"""
Time-based policy checks: admission windows and the cumulative on-time guard.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..config import WEEKDAYS, TimeWindowTable
from ..repositories import HistoryLog
from .event_service import EventService


class WindowPolicy:
    """
    Evaluates the weekday time window table against the host's local clock.
    """

    def __init__(self, table: TimeWindowTable) -> None:
        self.table = table

    def is_within_allowed_window(self, now: float) -> bool:
        moment = datetime.fromtimestamp(now)
        day = WEEKDAYS[moment.weekday()]
        minutes_now = moment.hour * 60 + moment.minute
        return any(start <= minutes_now <= end for start, end in self.table.windows_for(day))


def on_duration(log: HistoryLog, now: int, horizon: int) -> int:
    """
    Seconds the lamp was on between ``now - horizon`` and ``now``.

    The history only stores transitions, so every entry covers the span up
    to the next newer entry (or ``now`` for the last one). The scan goes
    newest to oldest and stops at the first entry at or before the horizon;
    that entry's span is counted in full.
    """
    low_time = now - horizon
    current = now
    on_time = 0
    for entry in reversed(log):
        if current <= low_time:
            break
        if entry.is_on:
            on_time += current - entry.timestamp
        current = entry.timestamp
    return on_time


def is_on_too_long(
    log: HistoryLog,
    now: int,
    max_on_time: int,
    rest_time: int,
    events: Optional[EventService] = None,
) -> bool:
    # Look back max + rest so an on-period starting right before the
    # boundary, or a short off/on cycle within the rest time, still counts.
    horizon = max_on_time + rest_time
    on_time = on_duration(log, now, horizon)
    if on_time >= max_on_time:
        if events is not None:
            events.emit(
                f"Lamp was on for {on_time} seconds in the last {horizon} seconds. "
                "Switching it off therefore."
            )
        return True
    return False
