"""Countdown state machine for SimpleTimer.

States
------
IDLE        Waiting for the user to start.  Inputs are editable.
RUNNING     Counting down, one tick per second.
PAUSED      Frozen; remembers how much time was left.
FINISHED    Reached 00:00.  Inputs are editable; start() runs again.

Transitions
-----------
IDLE | FINISHED → RUNNING        (start, when the inputs describe > 0 s)
RUNNING → PAUSED                 (pause)
PAUSED → RUNNING                 (resume, from the saved remaining time)
RUNNING → FINISHED               (remaining reaches 0)
Any → IDLE                       (reset)

Every transition replaces the whole ``TimerSnapshot`` at once, emits
``snapshot_changed`` and queues a background write of
``(remaining_millis, state)`` to the store.  A failed write is logged and
never undoes the in-memory transition.

All commands must be called from the thread that owns the engine; the
Qt event loop is what serialises them against the tick.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, QTimer, pyqtSignal

from ..errors import PersistenceError
from .state import (
    TimerSnapshot,
    TimerState,
    TICK_MILLIS,
    ZERO_DURATION_MESSAGE,
    clamp_seconds,
    filter_input,
    parse_field,
    to_millis,
)

if TYPE_CHECKING:
    from ..database.store import PersistedTimer, TimerStore

logger = logging.getLogger(__name__)

_EDITABLE_STATES = (TimerState.IDLE, TimerState.FINISHED)


class _PersistJob(QRunnable):
    """Runs one store write on the engine's writer thread."""

    def __init__(self, write: Callable[[], None], description: str) -> None:
        super().__init__()
        self._write = write
        self._description = description

    def run(self) -> None:
        try:
            self._write()
        except PersistenceError:
            logger.warning("Persisting %s failed", self._description, exc_info=True)


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Qt-based countdown timer with state machine and best-effort
    persistence.

    Signals
    -------
    snapshot_changed(snapshot: TimerSnapshot)
        Emitted after every change to the live snapshot, in order.
    state_changed(new_state: TimerState)
        Emitted only when the state field actually changes.
    finished()
        Emitted once per countdown that reaches 00:00.
    """

    snapshot_changed = pyqtSignal(object)
    state_changed = pyqtSignal(object)
    finished = pyqtSignal()

    def __init__(
        self,
        store: TimerStore | None = None,
        parent: QObject | None = None,
        *,
        keep_screen_on: bool = True,
        tick_interval_ms: int = TICK_MILLIS,
    ) -> None:
        super().__init__(parent)
        self._store = store

        # ── live state ────────────────────────────────────────────────
        self._snapshot = TimerSnapshot(keep_screen_on=keep_screen_on)
        self._paused_remaining: int = self._snapshot.remaining_millis
        self._announced_state: TimerState = self._snapshot.state

        if store is not None:
            prefs = store.read_preferences()
            self._snapshot = replace(
                self._snapshot,
                use_system_theme=prefs.use_system_theme,
                dark_theme_manual=prefs.dark_theme_manual,
            )

        # ── background writer (one thread keeps writes in order) ──────
        self._writer = QThreadPool(self)
        self._writer.setMaxThreadCount(1)

        # ── Qt timer ──────────────────────────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(tick_interval_ms)
        self._qt_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def snapshot(self) -> TimerSnapshot:
        """The current snapshot.  Always available, no subscription needed."""
        return self._snapshot

    @property
    def state(self) -> TimerState:
        return self._snapshot.state

    @property
    def remaining_millis(self) -> int:
        return self._snapshot.remaining_millis

    @property
    def is_running(self) -> bool:
        return self._snapshot.state == TimerState.RUNNING

    @property
    def is_ticking(self) -> bool:
        """True while the tick loop is scheduled."""
        return self._qt_timer.isActive()

    @property
    def store(self) -> TimerStore | None:
        return self._store

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> None:
        """Begin a fresh countdown from the inputs.  Only from IDLE or FINISHED."""
        if self._snapshot.state not in _EDITABLE_STATES:
            return
        total = self._snapshot.total_millis
        if total <= 0:
            logger.debug("start() rejected: zero duration")
            self._publish(
                replace(self._snapshot, error_message=ZERO_DURATION_MESSAGE),
                persist=False,
            )
            return
        self._begin_countdown(total)

    def pause(self) -> None:
        if self._snapshot.state != TimerState.RUNNING:
            return
        self._qt_timer.stop()
        self._paused_remaining = self._snapshot.remaining_millis
        self._publish(replace(self._snapshot, state=TimerState.PAUSED))

    def resume(self) -> None:
        if self._snapshot.state != TimerState.PAUSED or self._paused_remaining <= 0:
            return
        self._begin_countdown(self._paused_remaining)

    def reset(self) -> None:
        """Stop everything and go back to IDLE with the inputs' duration."""
        self._qt_timer.stop()
        self._publish(replace(
            self._snapshot,
            state=TimerState.IDLE,
            remaining_millis=self._snapshot.total_millis,
            error_message=None,
            just_finished=False,
        ))

    def update_minutes(self, text: str) -> None:
        self._update_input(replace(self._snapshot, input_minutes=filter_input(text)))

    def update_seconds(self, text: str) -> None:
        self._update_input(replace(self._snapshot, input_seconds=filter_input(text)))

    def ack_finish_handled(self) -> None:
        """The UI has reacted to the finish (sound, vibration ...)."""
        if not self._snapshot.just_finished:
            return
        self._publish(replace(self._snapshot, just_finished=False), persist=False)

    def restore(self, persisted: PersistedTimer) -> None:
        """Seed an IDLE engine from a record read at startup.

        A countdown that was running when the process died comes back
        PAUSED: the time spent dead is unknown, so the user resumes it.
        """
        if self._snapshot.state != TimerState.IDLE:
            return
        remaining = max(0, persisted.remaining_millis)
        if persisted.state in (TimerState.RUNNING, TimerState.PAUSED) and remaining > 0:
            self._paused_remaining = remaining
            self._publish(replace(
                self._snapshot, state=TimerState.PAUSED, remaining_millis=remaining,
            ))
        elif persisted.state != TimerState.IDLE:
            self._publish(replace(
                self._snapshot, state=TimerState.FINISHED, remaining_millis=0,
            ))

    # ── preferences ───────────────────────────────────────────────────

    def set_use_system_theme(self, enabled: bool) -> None:
        self._publish(replace(self._snapshot, use_system_theme=enabled), persist=False)
        self._persist_preferences()

    def set_dark_theme_manual(self, dark: bool) -> None:
        self._publish(replace(self._snapshot, dark_theme_manual=dark), persist=False)
        self._persist_preferences()

    def set_keep_screen_on(self, enabled: bool) -> None:
        self._publish(replace(self._snapshot, keep_screen_on=enabled), persist=False)

    # ── lifecycle ─────────────────────────────────────────────────────

    def wait_for_pending_writes(self, msecs: int = -1) -> bool:
        """Block until queued store writes have finished."""
        return self._writer.waitForDone(msecs)

    def shutdown(self) -> None:
        self._qt_timer.stop()
        self.wait_for_pending_writes()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _begin_countdown(self, start_from: int) -> None:
        self._qt_timer.stop()
        self._publish(replace(
            self._snapshot,
            state=TimerState.RUNNING,
            remaining_millis=start_from,
            error_message=None,
            just_finished=False,
        ))
        if self._snapshot.state == TimerState.RUNNING:
            self._qt_timer.start()

    def _on_tick(self) -> None:
        # A pause/reset that landed during the sleep ends the loop here.
        if self._snapshot.state != TimerState.RUNNING:
            self._qt_timer.stop()
            return

        remaining = max(0, self._snapshot.remaining_millis - TICK_MILLIS)
        self._publish(replace(self._snapshot, remaining_millis=remaining))
        if remaining > 0:
            return

        self._qt_timer.stop()
        # An observer of the last tick may already have paused or reset.
        if self._snapshot.state == TimerState.RUNNING:
            self._publish(replace(
                self._snapshot,
                state=TimerState.FINISHED,
                remaining_millis=0,
                just_finished=True,
            ))
            if self._snapshot.state == TimerState.FINISHED:
                self.finished.emit()

    def _update_input(self, edited: TimerSnapshot) -> None:
        if edited.state not in _EDITABLE_STATES:
            # Mid-countdown edits only change the text; the clock is untouched.
            self._publish(edited, persist=False)
            return
        minutes = parse_field(edited.input_minutes)
        seconds = clamp_seconds(parse_field(edited.input_seconds))
        self._publish(replace(
            edited,
            input_seconds=f"{seconds:02d}",
            remaining_millis=to_millis(minutes, seconds),
            error_message=None,
        ))

    def _publish(self, snapshot: TimerSnapshot, *, persist: bool = True) -> None:
        self._snapshot = snapshot
        # Queue the write before observers run: a command issued from a
        # slot publishes (and writes) a newer snapshot after this one.
        if persist:
            self._persist_timer(snapshot)
        self.snapshot_changed.emit(snapshot)
        # A slot that issued a command has already announced the newer state.
        if self._snapshot is not snapshot or snapshot.state == self._announced_state:
            return
        logger.debug("Timer %s -> %s", self._announced_state.value, snapshot.state.value)
        self._announced_state = snapshot.state
        self.state_changed.emit(snapshot.state)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — persistence
    # ══════════════════════════════════════════════════════════════════

    def _persist_timer(self, snapshot: TimerSnapshot) -> None:
        if self._store is None:
            return
        store = self._store
        remaining, state = snapshot.remaining_millis, snapshot.state
        self._writer.start(_PersistJob(
            lambda: store.write_timer(remaining, state),
            f"timer ({remaining} ms, {state.value})",
        ))

    def _persist_preferences(self) -> None:
        if self._store is None:
            return
        store = self._store
        use_system, dark_manual = (
            self._snapshot.use_system_theme, self._snapshot.dark_theme_manual,
        )
        self._writer.start(_PersistJob(
            lambda: store.write_preferences(use_system, dark_manual),
            "preferences",
        ))
