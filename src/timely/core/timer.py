"""Session lifecycle: the start/pause/resume/end state machine."""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from timely.core.duration import calculate_total_seconds
from timely.core.errors import (
    AlreadyActiveError,
    AlreadyPausedError,
    DataIntegrityError,
    NoActiveSessionError,
    NotPausedError,
    StorageFailureError,
    TimelyError,
)
from timely.core.store import SessionStore
from timely.models.session import Session, ensure_utc, utc_now
from timely.models.state import SessionState, TimerState

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[str, Session], None]

STARTED = "started"
PAUSED = "paused"
RESUMED = "resumed"
ENDED = "ended"


class TimerManager:
    """Owns the single current session and serializes every transition.

    Each transition runs under one lock: check state, build an updated copy
    of the session, persist it, then publish the copy. If the store fails
    the slot keeps its previous session, so a rejected transition leaves no
    trace in memory. Readers never take the lock; they only ever see a
    fully built session object.
    """

    def __init__(self, store: SessionStore, clock: Optional[Clock] = None):
        self.store = store
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._current: Optional[Session] = None
        self._listeners: List[Listener] = []

        self._recover_active_session()

    def _recover_active_session(self) -> None:
        """Adopt a session left running by a previous process."""
        unterminated = [s for s in self.store.get_all() if s.is_active]
        if len(unterminated) > 1:
            ids = ", ".join(s.id for s in unterminated)
            raise DataIntegrityError(
                f"Found {len(unterminated)} unterminated sessions: {ids}. "
                "Delete all but one before continuing"
            )

        session = self.store.get_active()
        if session is not None:
            logger.info(
                "Recovered %s session %s started at %s",
                session.state.value,
                session.id,
                session.start.isoformat(),
            )
            self._current = session

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(event, session)`` to run after each transition."""
        self._listeners.append(listener)

    @property
    def state(self) -> SessionState:
        session = self._current
        return session.state if session is not None else SessionState.IDLE

    def get_current_session(self) -> Optional[Session]:
        """A private copy of the current session, or None when idle."""
        session = self._current
        return session.model_copy(deep=True) if session is not None else None

    def get_current_elapsed(self) -> int:
        """Live active seconds of the current session, 0 when idle."""
        session = self._current
        if session is None:
            return 0
        return calculate_total_seconds(session, self._now())

    def snapshot(self) -> TimerState:
        """Timer state computed from a single read of the current session."""
        session = self._current
        if session is None:
            return TimerState()
        return TimerState(
            is_running=True,
            is_paused=session.is_paused,
            current_session_id=session.id,
            elapsed_seconds=calculate_total_seconds(session, self._now()),
        )

    def start(self) -> Session:
        """Begin a new session."""
        with self._lock:
            if self._current is not None:
                raise AlreadyActiveError(self._current.id)

            session = Session.begin(self._now())
            self._persist(session, new=True)
            self._current = session

        return self._notify(STARTED, session)

    def pause(self) -> Session:
        """Pause the running session."""
        with self._lock:
            current = self._require_current("pause")
            if current.is_paused:
                raise AlreadyPausedError()

            session = current.model_copy(
                update={"pauses": [*current.pauses, self._now()]}
            )
            self._persist(session)
            self._current = session

        return self._notify(PAUSED, session)

    def resume(self) -> Session:
        """Resume the paused session."""
        with self._lock:
            current = self._require_current("resume")
            if not current.is_paused:
                raise NotPausedError()

            session = current.model_copy(
                update={"resumes": [*current.resumes, self._now()]}
            )
            self._persist(session)
            self._current = session

        return self._notify(RESUMED, session)

    def end(self) -> Session:
        """Finish the current session, running or paused, and clear the slot."""
        with self._lock:
            current = self._require_current("end")

            session = current.model_copy(update={"end": self._now()})
            session.total_seconds = calculate_total_seconds(session)
            self._persist(session)
            self._current = None

        return self._notify(ENDED, session)

    def _require_current(self, action: str) -> Session:
        if self._current is None:
            raise NoActiveSessionError(action)
        return self._current

    def _persist(self, session: Session, new: bool = False) -> None:
        try:
            if new:
                self.store.insert_active(session)
            else:
                self.store.save(session)
        except TimelyError:
            raise
        except Exception as e:
            raise StorageFailureError(f"Failed to save session {session.id}: {e}") from e

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _notify(self, event: str, session: Session) -> Session:
        """Run listeners and hand back a copy the caller may freely modify."""
        logger.info("Session %s %s", session.id[:8], event)
        for listener in self._listeners:
            try:
                listener(event, session.model_copy(deep=True))
            except Exception:
                # The transition is already persisted
                logger.exception("Listener %r failed on %s", listener, event)
        return session.model_copy(deep=True)
