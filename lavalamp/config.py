"""
Runtime configuration for the lava lamp guard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import json
import os


WEEKDAYS: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# When the lamp may be switched on. Each day can hold several windows.
DEFAULT_TIME_WINDOWS: Dict[str, List[List[str]]] = {
    "Sun": [["7:55", "23:00"]],
    "Mon": [["6:55", "23:00"]],
    "Tue": [["13:55", "23:00"]],
    "Wed": [["13:55", "23:00"]],
    "Thu": [["13:55", "23:00"]],
    "Fri": [["6:55", "23:00"]],
    "Sat": [["7:55", "23:00"]],
}


class ConfigError(ValueError):
    """
    Raised for unusable configuration or invocation input: unknown mode,
    missing alert type, malformed time-window table.
    """


def time_to_minutes(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        parts = value.split(":")
        if len(parts) != 2:
            return None
        hour = int(parts[0])
        minute = int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return hour * 60 + minute
    except (ValueError, TypeError, AttributeError):
        return None


class TimeWindowTable:
    """
    Static per-weekday list of allowed (start, end) minute-of-day intervals.
    Both ends are inclusive and a window never spans midnight.
    """

    def __init__(self, windows: Mapping[str, Sequence[Tuple[int, int]]]) -> None:
        self._windows: Dict[str, Tuple[Tuple[int, int], ...]] = {}
        for day, pairs in windows.items():
            if day not in WEEKDAYS:
                raise ConfigError(f"Unknown weekday '{day}' in time window table")
            checked: List[Tuple[int, int]] = []
            for start, end in pairs:
                if not (0 <= start <= 1439 and 0 <= end <= 1439):
                    raise ConfigError(f"Window {start}-{end} for {day} is outside the day")
                if start > end:
                    raise ConfigError(
                        f"Window {start}-{end} for {day} spans midnight; split it per day"
                    )
                checked.append((start, end))
            self._windows[day] = tuple(checked)

    @classmethod
    def from_raw(cls, raw: object) -> "TimeWindowTable":
        """
        Build a table from the JSON shape ``{"Mon": [["6:55", "23:00"]]}``.
        """
        if not isinstance(raw, dict):
            raise ConfigError("Time window table must be an object keyed by weekday")
        parsed: Dict[str, List[Tuple[int, int]]] = {}
        for day, pairs in raw.items():
            if not isinstance(pairs, list):
                raise ConfigError(f"Windows for {day} must be a list of [start, end] pairs")
            parsed[day] = []
            for pair in pairs:
                if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                    raise ConfigError(f"Malformed window {pair!r} for {day}")
                start = time_to_minutes(pair[0])
                end = time_to_minutes(pair[1])
                if start is None or end is None:
                    raise ConfigError(
                        f"Window {pair!r} for {day} must use H:MM in 24-hour format"
                    )
                parsed[day].append((start, end))
        return cls(parsed)

    def windows_for(self, day: str) -> Tuple[Tuple[int, int], ...]:
        return self._windows.get(day, ())


def load_time_windows(path: Path) -> TimeWindowTable:
    """
    Load the time window table from JSON. If the file is missing, fall back
    to the built-in table and write it out so it can be edited.
    """
    if not path.exists():
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fh:
                json.dump(DEFAULT_TIME_WINDOWS, fh, indent=2)
        except OSError:
            pass
        return TimeWindowTable.from_raw(DEFAULT_TIME_WINDOWS)

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Cannot read time window table {path}: {exc}") from exc
    return TimeWindowTable.from_raw(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer number of seconds") from exc


@dataclass
class Settings:
    """
    Settings object populated from environment variables at construction
    time. Passed explicitly to the services, the CLI and the API factory.
    """

    # Persisted history and its sidecar lock
    history_path: Path = field(
        default_factory=lambda: Path(os.getenv("LAMP_STATUS_FILE", "data/lamp.status.json"))
    )
    # Diagnostic log written by EventService
    log_file: Path = field(
        default_factory=lambda: Path(os.getenv("LAMP_LOG_FILE", "data/lamp.log"))
    )
    # Marker file which, if it exists, keeps the lamp off
    off_file: Path = field(
        default_factory=lambda: Path(os.getenv("LAMP_OFF_FILE", "/tmp/lamp_off"))
    )
    time_windows_path: Path = field(
        default_factory=lambda: Path(os.getenv("LAMP_TIME_WINDOWS", "config/time_windows.json"))
    )

    # Minimum time the lamp stays off before an alert may switch it on again
    rest_time: int = field(default_factory=lambda: _env_int("LAMP_REST_TIME", 60 * 60))
    # Maximum cumulative on-time, 5 hours
    max_on_time: int = field(default_factory=lambda: _env_int("LAMP_MAX_TIME", 5 * 60 * 60))
    # How far back a detected manual switch is assumed to have happened
    manual_delta: int = field(default_factory=lambda: _env_int("LAMP_MANUAL_DELTA", 5 * 60))

    hardware_mode: str = field(default_factory=lambda: os.getenv("LAMP_HARDWARE_MODE", "mock"))
    switch_name: str = field(default_factory=lambda: os.getenv("LAMP_SWITCH", "Lava Lamp"))
    aha_host: str = field(default_factory=lambda: os.getenv("LAMP_AHA_HOST", "fritz.box"))
    aha_password: str = field(default_factory=lambda: os.getenv("LAMP_AHA_PASSWORD", ""))
    aha_user: Optional[str] = field(default_factory=lambda: os.getenv("LAMP_AHA_USER") or None)

    debug: bool = False
    time_windows: Optional[TimeWindowTable] = None

    def __post_init__(self) -> None:
        # Resolve paths relative to the project root (parent of the package)
        repo_root = Path(__file__).parent.parent

        self.history_path = Path(self.history_path)
        self.log_file = Path(self.log_file)
        self.off_file = Path(self.off_file)
        self.time_windows_path = Path(self.time_windows_path)

        if not self.history_path.is_absolute():
            self.history_path = repo_root / self.history_path
        if not self.log_file.is_absolute():
            self.log_file = repo_root / self.log_file
        if not self.time_windows_path.is_absolute():
            self.time_windows_path = repo_root / self.time_windows_path

        if self.rest_time < 0 or self.max_on_time <= 0 or self.manual_delta < 0:
            raise ConfigError("max_on_time must be positive; rest_time and manual_delta non-negative")

        if not self.history_path.parent.exists():
            self.history_path.parent.mkdir(parents=True, exist_ok=True)

        if self.time_windows is None:
            self.time_windows = load_time_windows(self.time_windows_path)
