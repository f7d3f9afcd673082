"""
Detects state changes that were not made by us (somebody pressed the
button) and records them with an estimated time.
"""

from __future__ import annotations

from typing import Optional
import logging

from ..repositories import HistoryLog, describe_entry
from ..schemas import HistoryEntry, HistoryMode
from .event_service import EventService

logger = logging.getLogger(__name__)


def estimate_manual_time(log: HistoryLog, now: int, manual_delta: int) -> int:
    """
    Assume the manual switch happened ``manual_delta`` seconds ago, unless
    that would predate the previous entry; then take the middle between the
    previous entry and now.
    """
    last = log.last_entry()
    if last is None:
        return now - manual_delta
    if now <= last.timestamp:
        # Clock did not move forward; never date before the previous entry.
        return last.timestamp
    calc = now - manual_delta
    return calc if calc > last.timestamp else now - (now - last.timestamp) // 2


class ManualChangeReconciler:
    def __init__(self, manual_delta: int, events: Optional[EventService] = None) -> None:
        self.manual_delta = manual_delta
        self.events = events

    def reconcile(self, log: HistoryLog, observed_is_on: bool, now: int) -> Optional[HistoryEntry]:
        """
        Append a ``manual`` entry if the observed state disagrees with the
        last recorded one. Returns the new entry, if any. Does not persist.
        """
        last = log.last_entry()
        if last is None or last.is_on == observed_is_on:
            return None

        entry = HistoryEntry(
            timestamp=estimate_manual_time(log, now, self.manual_delta),
            is_on=observed_is_on,
            mode=HistoryMode.MANUAL,
        )
        log.append(entry)
        logger.info(
            "reconcile.manual observed=%s recorded=%s estimated=%s",
            observed_is_on,
            last.is_on,
            entry.timestamp,
        )
        if self.events is not None:
            self.events.emit(describe_entry(entry))
        return entry
