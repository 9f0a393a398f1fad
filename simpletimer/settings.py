"""Host settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/SimpleTimer/settings.json

Usage::

    settings = load_settings()
    settings.keep_screen_on = False
    save_settings(settings)

Theme preferences are not here: they live in the timer store so the
engine can persist them itself.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

logger = logging.getLogger(__name__)

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "SimpleTimer"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"
DB_FILENAME = "timer.db"
DEFAULT_LOG_LEVEL = "WARNING"

_INPUT_FIELDS = ("default_minutes", "default_seconds")


@dataclass
class Settings:
    """All host-configurable options."""

    # ── timer ─────────────────────────────────────────────────────────
    default_minutes: str = "00"
    default_seconds: str = "30"
    restore_on_launch: bool = True

    # ── display ───────────────────────────────────────────────────────
    keep_screen_on: bool = True

    # ── storage & diagnostics ─────────────────────────────────────────
    db_path: str | None = None             # None → timer.db beside settings
    log_level: str = DEFAULT_LOG_LEVEL

    def resolved_db_path(self) -> Path:
        if self.db_path:
            return Path(self.db_path).expanduser()
        return APP_SUPPORT_DIR / DB_FILENAME


def resolve_log_level(name: object) -> str:
    """Upper-cased level name, or WARNING when *name* is not a logging level."""
    if isinstance(name, str) and isinstance(logging.getLevelName(name.upper()), int):
        return name.upper()
    logger.warning("Unknown log level %r; using WARNING", name)
    return DEFAULT_LOG_LEVEL


def _validated(data: dict) -> dict:
    """Drop values of the wrong type so they fall back to their defaults."""
    defaults = Settings()
    cleaned = {}
    for f in fields(Settings):
        if f.name not in data:
            continue
        value = data[f.name]
        default = getattr(defaults, f.name)
        if f.name in _INPUT_FIELDS and type(value) is int:
            value = str(value)
        if default is None:
            ok = value is None or isinstance(value, str)
        else:
            ok = type(value) is type(default)
        if not ok:
            logger.warning("Ignoring setting %s=%r", f.name, value)
            continue
        cleaned[f.name] = value
    if "log_level" in cleaned:
        cleaned["log_level"] = resolve_log_level(cleaned["log_level"])
    return cleaned


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            return Settings(**_validated(data))
    except (OSError, ValueError, TypeError, AttributeError):
        logger.warning("Unreadable settings at %s; using defaults", SETTINGS_PATH)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
