"""
Lamp orchestration logic: the watch, notify and list modes.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Union
import logging
import time

from ..config import ConfigError, Settings
from ..database import HistoryStore
from ..hardware import BaseSwitchController
from ..repositories import HistoryListing, HistoryLog, describe_entry
from ..schemas import HistoryEntry, HistoryFile, HistoryMode, InvocationResult
from .event_service import EventService
from .guards import WindowPolicy, is_on_too_long
from .reconciler import ManualChangeReconciler

logger = logging.getLogger(__name__)

MODES = ("watch", "notify", "list")
MODE_ALIASES = {"notif": "notify"}
ALERT_TYPES = ("problem", "custom", "recovery")


def normalize_mode(mode: Optional[str]) -> str:
    name = (mode or "list").strip().lower()
    name = MODE_ALIASES.get(name, name)
    if name not in MODES:
        raise ConfigError(f"Unknown mode '{mode}'")
    return name


def normalize_alert_type(alert_type: Optional[str]) -> str:
    if not alert_type:
        raise ConfigError("No notification type given")
    name = alert_type.strip().lower()
    if name not in ALERT_TYPES:
        raise ConfigError(
            f"Unknown notification type '{alert_type}' (expected one of {', '.join(ALERT_TYPES)})"
        )
    return name


class LampService:
    """
    Coordinates one invocation: lock and load the history, reconcile manual
    switches, apply the mode's policy, issue at most one switch command and
    persist. Any exception leaves the stored history as it was.
    """

    def __init__(
        self,
        settings: Settings,
        hardware: Optional[BaseSwitchController] = None,
        *,
        store: Optional[HistoryStore] = None,
        events: Optional[EventService] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.hardware = hardware
        self.store = store or HistoryStore(settings.history_path)
        self.events = events or EventService(settings.log_file)
        self.clock = clock
        self.windows = WindowPolicy(settings.time_windows)
        self.reconciler = ManualChangeReconciler(settings.manual_delta, self.events)

    def run(
        self,
        mode: Optional[str],
        alert_type: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Union[InvocationResult, HistoryListing]:
        name = normalize_mode(mode)
        if name == "watch":
            return self.watch()
        if name == "notify":
            return self.notify(alert_type, label)
        return self.list_history()

    def is_force_off_active(self) -> bool:
        return self.settings.off_file.exists()

    def list_history(self) -> HistoryListing:
        """
        Snapshot the history for display. No device access, no writes
        (apart from creating an empty store on the very first run).
        """
        with self.store.session() as log:
            listing = HistoryListing(log)
        logger.info("history.list entries=%s", len(listing))
        return listing

    def watch(self) -> InvocationResult:
        """
        Watchdog: switch the lamp off if it is on while forced off, outside
        its time window, or on for too long. Never switches it on.
        """
        hardware = self._require_hardware()
        with self.store.session() as log:
            now = self._now()
            observed = hardware.is_on()
            appended = self._reconcile(log, observed, now)
            action = "NONE"
            reason: Optional[str] = None
            if observed:
                reason = self._off_reason(log, now)
                if reason:
                    hardware.off()
                    appended.append(self._record(log, False, HistoryMode.WATCH, now))
                    action = "OFF"
            self._finish(log)

        logger.info("lamp.watch observed=%s action=%s reason=%s", observed, action, reason)
        return InvocationResult(
            mode="watch",
            observed_on=observed,
            is_on=observed and action != "OFF",
            action=action,
            appended=appended,
            reason=reason,
        )

    def notify(self, alert_type: Optional[str], label: Optional[str] = None) -> InvocationResult:
        """
        Alert handler: ``problem``/``custom`` switch the lamp on unless it is
        still resting, ``recovery`` switches it off.
        """
        kind = normalize_alert_type(alert_type)
        hardware = self._require_hardware()
        with self.store.session() as log:
            now = self._now()
            observed = hardware.is_on()
            appended = self._reconcile(log, observed, now)
            action = "NONE"
            reason: Optional[str] = None

            if kind in ("problem", "custom") and not observed:
                last = log.last_entry()
                rest_until = now - self.settings.rest_time
                if last is None or last.timestamp <= rest_until:
                    hardware.on()
                    appended.append(self._record(log, True, HistoryMode.NOTIFY, now, label))
                    action = "ON"
                else:
                    remaining = last.timestamp - rest_until
                    reason = (
                        f"Lamp not switched on because it was switched off just "
                        f"{now - last.timestamp} seconds ago; {remaining} seconds of rest left"
                    )
                    self.events.emit(reason)
            elif kind == "recovery" and observed:
                hardware.off()
                appended.append(self._record(log, False, HistoryMode.NOTIFY, now, label))
                action = "OFF"

            self._finish(log)

        logger.info("lamp.notify type=%s observed=%s action=%s", kind, observed, action)
        if action == "ON":
            is_on = True
        elif action == "OFF":
            is_on = False
        else:
            is_on = observed
        return InvocationResult(
            mode="notify",
            observed_on=observed,
            is_on=is_on,
            action=action,
            appended=appended,
            reason=reason,
        )

    def _require_hardware(self) -> BaseSwitchController:
        if self.hardware is None:
            raise ConfigError("A switch controller is required for this mode")
        return self.hardware

    def _now(self) -> int:
        return int(self.clock())

    def _reconcile(self, log: HistoryLog, observed: bool, now: int) -> List[HistoryEntry]:
        entry = self.reconciler.reconcile(log, observed, now)
        return [entry] if entry is not None else []

    def _off_reason(self, log: HistoryLog, now: int) -> Optional[str]:
        if self.is_force_off_active():
            return "force-off marker present"
        if not self.windows.is_within_allowed_window(now):
            return "outside allowed time window"
        if is_on_too_long(
            log, now, self.settings.max_on_time, self.settings.rest_time, self.events
        ):
            return "on for too long"
        return None

    def _record(
        self,
        log: HistoryLog,
        is_on: bool,
        mode: HistoryMode,
        now: int,
        label: Optional[str] = None,
    ) -> HistoryEntry:
        # History timestamps never decrease, even if the clock stepped back.
        last = log.last_entry()
        timestamp = max(now, last.timestamp) if last is not None else now
        entry = HistoryEntry(timestamp=timestamp, is_on=is_on, mode=mode, label=label or None)
        log.append(entry)
        self.events.emit(describe_entry(entry))
        return entry

    def _finish(self, log: HistoryLog) -> None:
        if self.settings.debug:
            self.events.emit(HistoryFile(entries=log.entries()).model_dump_json(indent=2))
        self.store.persist(log)
