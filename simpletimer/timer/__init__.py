"""Timer package."""

from .engine import TimerEngine
from .state import (
    TimerState,
    TimerSnapshot,
    DEFAULT_REMAINING_MILLIS,
    TICK_MILLIS,
    ZERO_DURATION_MESSAGE,
    format_millis,
)

__all__ = [
    "TimerEngine",
    "TimerState",
    "TimerSnapshot",
    "DEFAULT_REMAINING_MILLIS",
    "TICK_MILLIS",
    "ZERO_DURATION_MESSAGE",
    "format_millis",
]
