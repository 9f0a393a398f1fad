"""Allow running SimpleTimer as a module: python -m simpletimer."""

from __future__ import annotations

import argparse
import logging
import signal
import sys

from PyQt6.QtCore import QCoreApplication

from .database.store import TimerStore
from .settings import load_settings, resolve_log_level
from .status import read_status
from .timer.engine import TimerEngine
from .timer.state import TimerSnapshot, TimerState


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="simpletimer", description="Countdown timer.")
    parser.add_argument("--log-level", default=None, help="override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="run a countdown in the terminal")
    run.add_argument("--minutes", default=None, help="minutes (0-99)")
    run.add_argument("--seconds", default=None, help="seconds (0-59)")
    run.add_argument(
        "--restore", action=argparse.BooleanOptionalAction, default=None,
        help="continue a countdown left over from a previous run",
    )

    sub.add_parser("status", help="show the last persisted timer state")
    return parser


def _print_snapshot(snapshot: TimerSnapshot) -> None:
    print(f"{snapshot.remaining_formatted}  {snapshot.state.value}", flush=True)


def _run(args: argparse.Namespace, store: TimerStore, keep_screen_on: bool,
         defaults: tuple[str, str], restore: bool) -> int:
    # Read before the engine exists: its first publish overwrites the record.
    persisted = store.read_timer() if restore else None

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    engine = TimerEngine(store, keep_screen_on=keep_screen_on)

    minutes = args.minutes if args.minutes is not None else defaults[0]
    seconds = args.seconds if args.seconds is not None else defaults[1]
    engine.update_minutes(minutes)
    engine.update_seconds(seconds)

    if persisted is not None and args.minutes is None and args.seconds is None:
        engine.restore(persisted)

    last_shown: list[tuple[int, TimerState]] = []

    def on_snapshot(snapshot: TimerSnapshot) -> None:
        key = (snapshot.remaining_millis, snapshot.state)
        if last_shown and last_shown[-1] == key:
            return
        last_shown.append(key)
        _print_snapshot(snapshot)

    engine.snapshot_changed.connect(on_snapshot)
    engine.finished.connect(app.quit)

    if engine.state == TimerState.PAUSED:
        engine.resume()
    else:
        engine.start()

    if engine.snapshot.error_message:
        print(engine.snapshot.error_message, file=sys.stderr)
        engine.shutdown()
        return 1

    try:
        app.exec()
    finally:
        engine.shutdown()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_settings()
    logging.basicConfig(
        level=resolve_log_level(args.log_level or settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = TimerStore.open(settings.resolved_db_path())
    try:
        if args.command == "status":
            print(read_status(store).render())
            return 0
        restore = settings.restore_on_launch if args.restore is None else args.restore
        return _run(
            args, store, settings.keep_screen_on,
            (settings.default_minutes, settings.default_seconds), restore,
        )
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
