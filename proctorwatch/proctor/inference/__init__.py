"""Violation inference: debounce timers, cooldowns and rules"""

from .timers import DebounceTimers, LoopClock
from .cooldowns import CooldownLedger
from .rules import classify_object_label
from .engine import ViolationEngine

__all__ = [
    "DebounceTimers",
    "LoopClock",
    "CooldownLedger",
    "classify_object_label",
    "ViolationEngine",
]
