"""Session model for tracked work intervals."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from timely.models.state import SessionState


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Session(BaseModel):
    """Represents one tracked work session with its pause/resume history."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    start: datetime
    pauses: List[datetime] = []
    resumes: List[datetime] = []
    end: Optional[datetime] = None
    total_seconds: int = 0  # Cached, only recomputed when the session ends

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)

    @field_validator("pauses", "resumes")
    @classmethod
    def _normalize_instants(cls, values: List[datetime]) -> List[datetime]:
        return [ensure_utc(value) for value in values]

    @classmethod
    def begin(cls, now: Optional[datetime] = None) -> "Session":
        """Create a fresh session starting at ``now``."""
        return cls(start=now if now is not None else utc_now())

    @property
    def is_active(self) -> bool:
        """Check if session has not ended yet."""
        return self.end is None

    @property
    def is_paused(self) -> bool:
        """Check if session is active with an outstanding pause."""
        return self.is_active and len(self.pauses) > len(self.resumes)

    @property
    def state(self) -> SessionState:
        if not self.is_active:
            return SessionState.IDLE
        if self.is_paused:
            return SessionState.PAUSED
        return SessionState.RUNNING
