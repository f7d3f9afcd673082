"""
Hardware abstraction layer.
"""

from __future__ import annotations

from typing import Optional

from ..config import ConfigError, Settings
from .aha import AhaClient, AhaSwitchController
from .controller import BaseSwitchController, DeviceError, MockSwitchController

__all__ = [
    "AhaClient",
    "AhaSwitchController",
    "BaseSwitchController",
    "DeviceError",
    "MockSwitchController",
    "build_controller",
]


def build_controller(settings: Settings, name: Optional[str] = None) -> BaseSwitchController:
    """
    Pick the switch implementation from ``settings.hardware_mode``.
    ``name`` overrides the configured switch name or AIN.
    """
    switch_name = name or settings.switch_name
    mode = settings.hardware_mode.lower()
    if mode == "mock":
        return MockSwitchController(switch_name)
    if mode == "aha":
        client = AhaClient(settings.aha_host, settings.aha_password, settings.aha_user)
        return AhaSwitchController(client, switch_name)
    raise ConfigError(f"Unknown hardware mode '{settings.hardware_mode}'")
