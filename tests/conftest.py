"""Shared pytest fixtures for SimpleTimer tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from simpletimer.database.store import TimerStore
from simpletimer.timer.engine import TimerEngine


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture
def store(tmp_path):
    """A fresh SQLite-file store per test."""
    s = TimerStore.open(tmp_path / "timer.db")
    yield s
    s.close()


@pytest.fixture
def engine(qapp, store):
    """Fresh TimerEngine wired to the test store."""
    e = TimerEngine(store)
    yield e
    e.shutdown()


@pytest.fixture
def engine_no_db(qapp):
    """Fresh TimerEngine without a store (pure state-machine tests)."""
    e = TimerEngine(None)
    yield e
    e.shutdown()
