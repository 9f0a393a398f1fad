"""Durable key-value store for timer state and user preferences.

Four fixed keys live in the ``store_entries`` table:

    remaining_ms        milliseconds left on the last published snapshot
    state               TimerState value ("Idle", "Running", ...)
    use_system_theme    "true" / "false"
    dark_theme_manual   "true" / "false"

Absent keys are the normal first-run case.  Reads never raise: missing
or corrupt values fall back to the defaults below.  Writes raise
``PersistenceError`` and leave it to the caller to decide whether that
matters.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import NamedTuple

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session as OrmSession
from sqlalchemy.pool import StaticPool

from ..errors import PersistenceError
from ..timer.state import TimerState, DEFAULT_REMAINING_MILLIS
from .models import Base, StoreEntry

logger = logging.getLogger(__name__)

# ── keys & defaults ──────────────────────────────────────────────────────────

KEY_REMAINING = "remaining_ms"
KEY_STATE = "state"
KEY_USE_SYSTEM_THEME = "use_system_theme"
KEY_DARK_THEME_MANUAL = "dark_theme_manual"

DEFAULT_USE_SYSTEM_THEME = True    # follow the device
DEFAULT_DARK_THEME_MANUAL = False


class PersistedTimer(NamedTuple):
    remaining_millis: int = DEFAULT_REMAINING_MILLIS
    state: TimerState = TimerState.IDLE


class PersistedPreferences(NamedTuple):
    use_system_theme: bool = DEFAULT_USE_SYSTEM_THEME
    dark_theme_manual: bool = DEFAULT_DARK_THEME_MANUAL


# ── value codecs ──────────────────────────────────────────────────────────


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring corrupt integer value %r", raw)
        return default


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw is not None:
        logger.warning("Ignoring corrupt boolean value %r", raw)
    return default


def _parse_state(raw: str | None) -> TimerState:
    if raw is None:
        return TimerState.IDLE
    try:
        return TimerState(raw)
    except ValueError:
        logger.warning("Unrecognized stored timer state %r; using Idle", raw)
        return TimerState.IDLE


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


# ── store ─────────────────────────────────────────────────────────────────


class TimerStore:
    """SQLite-backed store.  Safe to use from the engine's writer thread."""

    def __init__(self, url: str) -> None:
        kwargs = {
            "connect_args": {"check_same_thread": False},
            "echo": False,
        }
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every thread sees its own
            # empty in-memory database.
            kwargs["poolclass"] = StaticPool
        self._url = url
        self._engine = create_engine(url, **kwargs)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @classmethod
    def open(cls, path: Path) -> "TimerStore":
        """Open (and initialise) a store backed by the SQLite file at *path*."""
        path.parent.mkdir(parents=True, exist_ok=True)
        store = cls(f"sqlite:///{path}")
        store.init()
        return store

    @classmethod
    def in_memory(cls) -> "TimerStore":
        store = cls("sqlite:///:memory:")
        store.init()
        return store

    @property
    def url(self) -> str:
        return self._url

    def init(self) -> None:
        """Create tables.  Idempotent."""
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def session(self):
        """Yield a SQLAlchemy session; commit on success, rollback on error."""
        session: OrmSession = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── timer record ──────────────────────────────────────────────────

    def write_timer(self, remaining_millis: int, state: TimerState) -> None:
        self._write({
            KEY_REMAINING: str(int(remaining_millis)),
            KEY_STATE: state.value,
        })

    def read_timer(self) -> PersistedTimer:
        values = self._read((KEY_REMAINING, KEY_STATE))
        return PersistedTimer(
            remaining_millis=max(
                0, _parse_int(values.get(KEY_REMAINING), DEFAULT_REMAINING_MILLIS),
            ),
            state=_parse_state(values.get(KEY_STATE)),
        )

    # ── preferences record ────────────────────────────────────────────

    def write_preferences(self, use_system_theme: bool, dark_theme_manual: bool) -> None:
        self._write({
            KEY_USE_SYSTEM_THEME: _format_bool(use_system_theme),
            KEY_DARK_THEME_MANUAL: _format_bool(dark_theme_manual),
        })

    def read_preferences(self) -> PersistedPreferences:
        values = self._read((KEY_USE_SYSTEM_THEME, KEY_DARK_THEME_MANUAL))
        return PersistedPreferences(
            use_system_theme=_parse_bool(
                values.get(KEY_USE_SYSTEM_THEME), DEFAULT_USE_SYSTEM_THEME,
            ),
            dark_theme_manual=_parse_bool(
                values.get(KEY_DARK_THEME_MANUAL), DEFAULT_DARK_THEME_MANUAL,
            ),
        )

    # ── internals ─────────────────────────────────────────────────────

    def _write(self, values: dict[str, str]) -> None:
        try:
            with self.session() as db:
                for key, value in values.items():
                    db.merge(StoreEntry(key=key, value=value))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not write {sorted(values)}: {exc}") from exc

    def _read(self, keys: tuple[str, ...]) -> dict[str, str]:
        try:
            with self.session() as db:
                rows = db.query(StoreEntry).filter(StoreEntry.key.in_(keys)).all()
                return {row.key: row.value for row in rows}
        except SQLAlchemyError:
            logger.warning("Reading %s failed; using defaults", keys, exc_info=True)
            return {}
