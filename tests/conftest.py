import os
import sys

import pytest

# Ensure project root is on sys.path for `import lavalamp`
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(PROJECT_ROOT)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from lavalamp.config import Settings, TimeWindowTable, WEEKDAYS
from lavalamp.hardware import MockSwitchController


ALL_DAY = TimeWindowTable({day: [(0, 1439)] for day in WEEKDAYS})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        history_path=tmp_path / "lamp.status.json",
        log_file=tmp_path / "lamp.log",
        off_file=tmp_path / "lamp_off",
        time_windows_path=tmp_path / "time_windows.json",
        rest_time=3600,
        max_on_time=5 * 3600,
        manual_delta=300,
        hardware_mode="mock",
        time_windows=ALL_DAY,
    )


@pytest.fixture
def lamp():
    return MockSwitchController()
