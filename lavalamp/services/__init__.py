"""
Service layer exports.
"""

from .event_service import EventService
from .guards import WindowPolicy, is_on_too_long
from .lamp_service import LampService
from .reconciler import ManualChangeReconciler, estimate_manual_time

__all__ = [
    "EventService",
    "LampService",
    "ManualChangeReconciler",
    "WindowPolicy",
    "estimate_manual_time",
    "is_on_too_long",
]
