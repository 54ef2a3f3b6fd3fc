"""Caller-facing commands over the timer, the store and the aggregator."""

import logging
from datetime import datetime
from typing import List, Optional

from timely.config import Settings
from timely.core.duration import calculate_total_seconds
from timely.core.errors import AlreadyActiveError
from timely.core.store import JsonSessionStore, SessionStore
from timely.core.summary import WEEKLY_THRESHOLD_HOURS, aggregate, month_bounds
from timely.core.timer import TimerManager
from timely.models.session import Session, ensure_utc
from timely.models.state import TimerState
from timely.models.summary import MonthlySummary

logger = logging.getLogger(__name__)


class Tracker:
    """The command surface shared by every front end (CLI, tray, UI).

    Build one per process and hand it to whatever dispatches commands.
    """

    def __init__(
        self,
        store: SessionStore,
        timer: Optional[TimerManager] = None,
        weekly_threshold_hours: float = WEEKLY_THRESHOLD_HOURS,
    ):
        self.store = store
        self._timer = timer
        self.weekly_threshold_hours = weekly_threshold_hours

    @property
    def timer(self) -> TimerManager:
        """The timer, created (and recovered from the store) on first use.

        Listing, deleting and clearing sessions never touch it, so they keep
        working when the store holds more than one unterminated session.
        """
        if self._timer is None:
            self._timer = TimerManager(self.store)
        return self._timer

    @classmethod
    def from_settings(cls, settings: Settings) -> "Tracker":
        """Open (and initialize if needed) the store described by ``settings``."""
        store = JsonSessionStore(settings.data_dir, history=settings.history)
        if not store.exists():
            store.init()
        return cls(store, weekly_threshold_hours=settings.weekly_threshold_hours)

    def start(self) -> Session:
        return self.timer.start()

    def pause(self) -> Session:
        return self.timer.pause()

    def resume(self) -> Session:
        return self.timer.resume()

    def end(self) -> Session:
        return self.timer.end()

    def get_current_state(self) -> TimerState:
        return self.timer.snapshot()

    def get_all_sessions(self) -> List[Session]:
        """All sessions, newest first."""
        return self.store.get_all()

    def get_session(self, session_id: str) -> Optional[Session]:
        return self.store.get_by_id(session_id)

    def get_monthly_summary(self, year: int, month: int) -> MonthlySummary:
        start, end = month_bounds(year, month)
        sessions = self.store.get_for_period(start, end)
        return aggregate(sessions, year, month, self.weekly_threshold_hours)

    def add_session(self, start: datetime, end: datetime) -> Session:
        """Record a finished session after the fact."""
        start, end = ensure_utc(start), ensure_utc(end)
        if end < start:
            raise ValueError(f"Session end {end.isoformat()} is before start {start.isoformat()}")

        session = Session(start=start, end=end)
        session.total_seconds = calculate_total_seconds(session)
        self.store.save(session)
        logger.info("Added session %s (%ss)", session.id, session.total_seconds)
        return session

    def delete_session(self, session_id: str, force: bool = False) -> bool:
        """Delete a finished session.

        Unterminated sessions are refused unless ``force`` is set, which is
        how a store left with several of them gets repaired. The session held
        by this tracker's timer is refused even then.
        """
        if self._timer is not None:
            current = self._timer.get_current_session()
            if current is not None and current.id == session_id:
                raise AlreadyActiveError(session_id)

        session = self.store.get_by_id(session_id)
        if session is None:
            return False
        if session.is_active and not force:
            raise AlreadyActiveError(session_id)
        return self.store.delete(session_id)

    def clear_sessions(self) -> int:
        """Delete every session. Refused while a session is active."""
        return self.store.clear()

    def clear_sessions_before(self, cutoff: datetime) -> int:
        """Delete finished sessions started before ``cutoff``; active ones stay."""
        return self.store.delete_before(ensure_utc(cutoff))
