"""Timer state enum, the published snapshot, and duration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TimerState(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    PAUSED = "Paused"
    FINISHED = "Finished"


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_INPUT_MINUTES = "00"
DEFAULT_INPUT_SECONDS = "30"
DEFAULT_REMAINING_MILLIS = 30_000

MAX_INPUT_LENGTH = 2       # caps minutes at 99
MAX_SECONDS = 59
TICK_MILLIS = 1000

ZERO_DURATION_MESSAGE = "Set a time greater than 00:00"

DIGITS = "0123456789"


@dataclass(frozen=True)
class TimerSnapshot:
    """One complete, immutable value of the observable timer state."""

    input_minutes: str = DEFAULT_INPUT_MINUTES
    input_seconds: str = DEFAULT_INPUT_SECONDS
    state: TimerState = TimerState.IDLE
    remaining_millis: int = DEFAULT_REMAINING_MILLIS
    error_message: str | None = None
    just_finished: bool = False

    # ── preferences (pass-through, no timing role) ────────────────────
    keep_screen_on: bool = True
    use_system_theme: bool = True
    dark_theme_manual: bool = False

    @property
    def remaining_formatted(self) -> str:
        return format_millis(self.remaining_millis)

    @property
    def total_millis(self) -> int:
        """Duration the current inputs describe."""
        return input_total_millis(self.input_minutes, self.input_seconds)


# ── helpers ───────────────────────────────────────────────────────────────


def filter_input(text: str) -> str:
    """Keep digits only, at most two of them.  Empty becomes ``"0"``."""
    digits = "".join(ch for ch in text if ch in DIGITS)[:MAX_INPUT_LENGTH]
    return digits or "0"


def parse_field(text: str) -> int:
    """Non-numeric or empty input counts as 0."""
    try:
        return int(text)
    except ValueError:
        return 0


def clamp_seconds(seconds: int) -> int:
    return min(max(seconds, 0), MAX_SECONDS)


def to_millis(minutes: int, seconds: int) -> int:
    return max(0, minutes * 60 + seconds) * 1000


def input_total_millis(minutes_text: str, seconds_text: str) -> int:
    return to_millis(parse_field(minutes_text), clamp_seconds(parse_field(seconds_text)))


def format_millis(ms: int) -> str:
    """``65_000`` → ``"01:05"``."""
    total = max(0, ms) // 1000
    m, s = divmod(total, 60)
    return f"{m:02d}:{s:02d}"
