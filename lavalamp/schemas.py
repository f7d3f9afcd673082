"""
Pydantic models for history records, the persisted file and API payloads.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class HistoryMode(str, Enum):
    """
    What produced a history entry.
    """

    WATCH = "watch"
    NOTIFY = "notif"
    MANUAL = "manual"
    INITIAL = "initial"


class HistoryEntry(BaseModel):
    """
    One state change. The lamp keeps ``is_on`` until the next entry.
    """
    model_config = ConfigDict(frozen=True)

    timestamp: int
    is_on: bool
    mode: HistoryMode = HistoryMode.INITIAL
    label: Optional[str] = None


class HistoryFile(BaseModel):
    """
    On-disk representation of the whole history log.
    """

    version: int = 1
    entries: List[HistoryEntry] = Field(default_factory=list)


class HistoryEntryModel(BaseModel):
    """
    API representation of a history entry (used by the history listing).
    """

    timestamp: int
    time: str
    state: Literal["ON", "OFF"]
    mode: HistoryMode
    label: Optional[str] = None


class NotifyRequest(BaseModel):
    """
    Payload posted by an alert system (Nagios, Jenkins, ...).
    """

    type: str
    label: Optional[str] = None


class InvocationResult(BaseModel):
    """
    Outcome of one watch/notify invocation.
    """

    mode: Literal["watch", "notify"]
    observed_on: bool
    is_on: bool
    action: Literal["ON", "OFF", "NONE"]
    appended: List[HistoryEntry] = Field(default_factory=list)
    reason: Optional[str] = None
