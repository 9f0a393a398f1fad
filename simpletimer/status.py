"""Secondary display: the persisted timer, rendered without a live engine.

Reads only the store, so while a countdown runs elsewhere it can lag by
up to one tick (the last write that completed).
"""

from __future__ import annotations

from typing import NamedTuple

from .database.store import TimerStore
from .timer.state import TimerState, format_millis


class TimerStatus(NamedTuple):
    remaining_formatted: str
    state: TimerState

    def render(self) -> str:
        return f"{self.remaining_formatted}  {self.state.value}"


def read_status(store: TimerStore) -> TimerStatus:
    """Refresh: re-read the store and build a fresh status."""
    persisted = store.read_timer()
    return TimerStatus(format_millis(persisted.remaining_millis), persisted.state)
