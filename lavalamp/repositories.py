"""
In-memory history log and its rendering helpers.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional
import time

from .schemas import HistoryEntry, HistoryEntryModel


class HistoryLog:
    """
    Append-only, insertion-ordered sequence of history entries.
    """

    def __init__(self, entries: Optional[Iterable[HistoryEntry]] = None) -> None:
        self._entries: List[HistoryEntry] = list(entries or [])

    def append(self, entry: HistoryEntry) -> None:
        # Does not persist; HistoryStore.persist writes the whole log.
        self._entries.append(entry)

    def last_entry(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __reversed__(self) -> Iterator[HistoryEntry]:
        return reversed(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def state_text(is_on: bool) -> str:
    return "On " if is_on else "Off"


def describe_entry(entry: HistoryEntry) -> str:
    """
    ``"On  -- notif: build #42"`` style summary used in logs and listings.
    """
    text = f"{state_text(entry.is_on)} -- {entry.mode.value}"
    if entry.label:
        text += f": {entry.label}"
    return text


def render_entry(entry: HistoryEntry) -> str:
    return f"{time.ctime(entry.timestamp)}: {describe_entry(entry)}"


def to_model(entry: HistoryEntry) -> HistoryEntryModel:
    return HistoryEntryModel(
        timestamp=entry.timestamp,
        time=time.ctime(entry.timestamp),
        state="ON" if entry.is_on else "OFF",
        mode=entry.mode,
        label=entry.label,
    )


class HistoryListing:
    """
    Lazy, restartable view over a loaded history. Each iteration renders
    the entries again, in insertion order.
    """

    def __init__(self, log: HistoryLog) -> None:
        self._entries = log.entries()

    def __iter__(self) -> Iterator[str]:
        return (render_entry(entry) for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def models(self) -> List[HistoryEntryModel]:
        return [to_model(entry) for entry in self._entries]
