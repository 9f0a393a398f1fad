"""Shared test helpers for SimpleTimer."""

from simpletimer.timer.engine import TimerEngine
from simpletimer.timer.state import TimerState


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


def tick(engine: TimerEngine, times: int = 1) -> None:
    """Drive the tick loop by hand instead of waiting on the QTimer."""
    for _ in range(times):
        engine._on_tick()


def run_to_finish(engine: TimerEngine) -> int:
    """Tick until the countdown leaves RUNNING; return the tick count."""
    count = 0
    while engine.state == TimerState.RUNNING:
        engine._on_tick()
        count += 1
    return count
