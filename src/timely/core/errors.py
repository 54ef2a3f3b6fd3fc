"""Exceptions raised by the Timely core."""

from typing import Optional


class TimelyError(Exception):
    """Base class for all Timely failures."""


class AlreadyActiveError(TimelyError):
    """A session is already running or paused."""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        message = "A session is already active"
        if session_id:
            message += f" ({session_id[:8]})"
        super().__init__(message)


class NoActiveSessionError(TimelyError):
    """The requested transition needs an active session and there is none."""

    def __init__(self, action: str = "continue"):
        self.action = action
        super().__init__(f"No active session to {action}")


class AlreadyPausedError(TimelyError):
    def __init__(self):
        super().__init__("Session is already paused")


class NotPausedError(TimelyError):
    def __init__(self):
        super().__init__("Session is not paused")


class InvalidPeriodError(TimelyError, ValueError):
    """A (year, month) pair that does not name a calendar month."""

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Invalid period: {year}-{month:02d}")


class StorageFailureError(TimelyError):
    """Persistence I/O or serialization failed."""


class DataIntegrityError(TimelyError):
    """Persisted data violates an invariant the core relies on."""
