"""Exception types for SimpleTimer."""


class SimpleTimerError(Exception):
    """Base class for all SimpleTimer errors."""


class PersistenceError(SimpleTimerError):
    """The timer store could not complete a write."""
