"""
Hardware abstraction for the lamp's switchable outlet.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List
import time


class DeviceError(RuntimeError):
    """
    Querying or switching the outlet failed.
    """


class BaseSwitchController(ABC):
    """
    Base interface implemented by concrete switch controllers.
    """

    @abstractmethod
    def is_on(self) -> bool:
        """
        Return the current state of the outlet.
        """

    @abstractmethod
    def set_state(self, is_on: bool) -> None:
        """
        Switch the outlet on or off.
        """

    def close(self) -> None:
        """
        Release connections held by the controller.
        """

    def on(self) -> None:
        self.set_state(True)

    def off(self) -> None:
        self.set_state(False)


class MockSwitchController(BaseSwitchController):
    """
    In-memory simulation used for development and automated tests.
    """

    def __init__(self, name: str = "Lava Lamp", initial: bool = False, latency: float = 0.0):
        self.name = name
        # Keep the relay state in memory; a real outlet would be asked instead.
        self._state = initial
        self.latency = latency
        self.commands: List[bool] = []
        self.closed = False

    def is_on(self) -> bool:
        if self.latency:
            time.sleep(self.latency)
        return self._state

    def set_state(self, is_on: bool) -> None:
        self.commands.append(is_on)
        self._state = is_on

    def close(self) -> None:
        self.closed = True

    def flip(self, is_on: bool) -> None:
        """
        Change the state behind our back, like somebody pressing the button.
        """
        self._state = is_on
