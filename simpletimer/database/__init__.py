"""Database package."""

from .store import TimerStore, PersistedTimer, PersistedPreferences
from .models import StoreEntry

__all__ = ["TimerStore", "PersistedTimer", "PersistedPreferences", "StoreEntry"]
