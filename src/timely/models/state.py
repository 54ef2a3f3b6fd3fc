"""Timer state models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SessionState(str, Enum):
    """State of the timer's current-session slot."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerState(BaseModel):
    """Snapshot of the timer as reported to callers."""

    is_running: bool = False
    is_paused: bool = False
    current_session_id: Optional[str] = None
    elapsed_seconds: int = 0
