"""Session persistence: the storage contract and a JSON file store with git history."""

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import git
from git import Repo
from pydantic import TypeAdapter, ValidationError

from timely.core.errors import AlreadyActiveError, DataIntegrityError, StorageFailureError
from timely.models.session import Session, ensure_utc

logger = logging.getLogger(__name__)

_TIMESTAMPS = TypeAdapter(List[datetime])


class SessionStore(Protocol):
    """What the timer and tracker need from persistence.

    Implementations report their own failures as ``StorageFailureError`` or
    ``DataIntegrityError``. Any other exception escaping a write is wrapped
    into ``StorageFailureError`` by the timer.
    """

    def save(self, session: Session) -> None:
        ...

    def insert_active(self, session: Session) -> None:
        ...

    def get_by_id(self, session_id: str) -> Optional[Session]:
        ...

    def get_active(self) -> Optional[Session]:
        ...

    def get_all(self) -> List[Session]:
        ...

    def get_for_period(self, start: datetime, end: datetime) -> List[Session]:
        ...

    def delete(self, session_id: str) -> bool:
        ...

    def delete_before(self, cutoff: datetime) -> int:
        ...

    def clear(self, include_active: bool = False) -> int:
        ...


class JsonSessionStore:
    """Keeps every session in one JSON document, optionally versioned with git.

    With history enabled the data directory is a git repository and each
    write is committed, so every transition leaves an audit trail.
    """

    def __init__(self, data_dir: Path, history: bool = True):
        self.data_dir = Path(data_dir)
        self.sessions_file = self.data_dir / "sessions.json"
        self.history = history
        self._repo: Optional[Repo] = None
        self._lock = threading.Lock()

    @property
    def repo(self) -> Repo:
        """Get the history repository, opening it if needed."""
        if self._repo is None:
            self._repo = Repo(self.data_dir)
        return self._repo

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        if not self.sessions_file.exists():
            return False
        return not self.history or (self.data_dir / ".git").exists()

    def init(self) -> None:
        """Create the data directory, the sessions file and the history repo."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.sessions_file.exists():
                self.sessions_file.write_text(json.dumps([], indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageFailureError(f"Cannot initialize {self.data_dir}: {e}") from e

        if self.history and not (self.data_dir / ".git").exists():
            self._repo = Repo.init(self.data_dir)
            self._commit_history("Initialize Timely session store")

        logger.debug("Session store ready at %s", self.data_dir)

    def save(self, session: Session) -> None:
        """Insert or replace ``session`` by id."""
        with self._lock:
            sessions = self._load_sessions()
            for index, existing in enumerate(sessions):
                if existing.id == session.id:
                    sessions[index] = session
                    break
            else:
                sessions.append(session)
            self._save_sessions(sessions, self._describe(session))
        logger.debug("Saved session %s", session.id)

    def insert_active(self, session: Session) -> None:
        """Add a newly started session unless another one is already active.

        The check and the write happen under the store lock, so a second
        timer sharing this store cannot start a parallel session.
        """
        with self._lock:
            sessions = self._load_sessions()
            active = next((s for s in sessions if s.is_active), None)
            if active is not None:
                raise AlreadyActiveError(active.id)
            sessions.append(session)
            self._save_sessions(sessions, self._describe(session))
        logger.debug("Inserted active session %s", session.id)

    def get_by_id(self, session_id: str) -> Optional[Session]:
        return next((s for s in self._load_sessions() if s.id == session_id), None)

    def get_active(self) -> Optional[Session]:
        """Most recently started session that has not ended."""
        active = [s for s in self._load_sessions() if s.is_active]
        if not active:
            return None
        return max(active, key=lambda s: s.start)

    def get_all(self) -> List[Session]:
        """All sessions, newest first."""
        return sorted(self._load_sessions(), key=lambda s: s.start, reverse=True)

    def get_for_period(self, start: datetime, end: datetime) -> List[Session]:
        """Sessions started in ``[start, end)``, oldest first."""
        start, end = ensure_utc(start), ensure_utc(end)
        sessions = [s for s in self._load_sessions() if start <= s.start < end]
        return sorted(sessions, key=lambda s: s.start)

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns False if no such session exists."""
        with self._lock:
            sessions = self._load_sessions()
            remaining = [s for s in sessions if s.id != session_id]
            if len(remaining) == len(sessions):
                return False
            self._save_sessions(remaining, f"Delete session {session_id[:8]}")
        logger.info("Deleted session %s", session_id)
        return True

    def delete_before(self, cutoff: datetime) -> int:
        """Remove finished sessions started before ``cutoff``.

        Active sessions are always kept. Returns how many were removed.
        """
        cutoff = ensure_utc(cutoff)
        with self._lock:
            sessions = self._load_sessions()
            remaining = [s for s in sessions if s.is_active or s.start >= cutoff]
            count = len(sessions) - len(remaining)
            if count:
                self._save_sessions(
                    remaining, f"Delete {count} sessions before {cutoff:%Y-%m-%d %H:%M}"
                )
        logger.info("Deleted %d sessions started before %s", count, cutoff.isoformat())
        return count

    def clear(self, include_active: bool = False) -> int:
        """Remove every session and return how many were removed.

        Refuses with ``AlreadyActiveError`` while a session is active unless
        ``include_active`` is set.
        """
        with self._lock:
            sessions = self._load_sessions()
            active = next((s for s in sessions if s.is_active), None)
            if active is not None and not include_active:
                raise AlreadyActiveError(active.id)
            self._save_sessions([], f"Clear {len(sessions)} sessions")
        logger.info("Cleared %d sessions", len(sessions))
        return len(sessions)

    def _load_sessions(self) -> List[Session]:
        """Load sessions from the sessions file."""
        if not self.sessions_file.exists():
            return []

        try:
            records = json.loads(self.sessions_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise StorageFailureError(f"Cannot read {self.sessions_file}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageFailureError(f"Corrupt sessions file {self.sessions_file}: {e}") from e

        if not isinstance(records, list):
            raise StorageFailureError(f"Corrupt sessions file {self.sessions_file}: expected a list")

        return [self._decode(record) for record in records]

    def _decode(self, record: Any) -> Session:
        if not isinstance(record, dict):
            raise DataIntegrityError(f"Malformed session record: {record!r}")

        session_id = record.get("id")
        data = dict(record)
        data["pauses"] = self._decode_timestamps(record, "pauses")
        data["resumes"] = self._decode_timestamps(record, "resumes")

        try:
            return Session.model_validate(data)
        except ValidationError as e:
            raise DataIntegrityError(f"Malformed session {session_id}: {e}") from e

    def _decode_timestamps(self, record: Dict[str, Any], field: str) -> List[datetime]:
        """Decode a pause/resume list, falling back to empty on corruption."""
        value = record.get(field, [])
        try:
            # Lists written by older stores were embedded as JSON text
            if isinstance(value, str):
                value = json.loads(value)
            return _TIMESTAMPS.validate_python(value)
        except (json.JSONDecodeError, ValidationError):
            logger.warning(
                "Session %s has malformed %s %r; treating as empty",
                record.get("id"),
                field,
                value,
            )
            return []

    def _save_sessions(self, sessions: List[Session], message: str) -> None:
        """Write sessions atomically and record the change in history."""
        try:
            payload = json.dumps(
                [session.model_dump(mode="json") for session in sessions], indent=2
            )
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_file = self.sessions_file.with_suffix(".json.tmp")
            tmp_file.write_text(payload, encoding="utf-8")
            os.replace(tmp_file, self.sessions_file)
        except (OSError, TypeError, ValueError) as e:
            raise StorageFailureError(f"Cannot write {self.sessions_file}: {e}") from e

        self._commit_history(message)

    def _commit_history(self, message: str) -> None:
        if not self.history:
            return
        try:
            self.repo.index.add([self.sessions_file.name])
            self.repo.index.commit(message)
        except (git.exc.GitError, OSError) as e:
            # The JSON file is the source of truth; history is best effort
            logger.warning("Could not record history for %r: %s", message, e)

    @staticmethod
    def _describe(session: Session) -> str:
        short_id = session.id[:8]
        if not session.is_active:
            return f"End session {short_id} ({session.total_seconds}s)"
        if session.is_paused:
            return f"Pause session {short_id}"
        if session.resumes:
            return f"Resume session {short_id}"
        return f"Start session {short_id} at {session.start:%Y-%m-%d %H:%M}"
