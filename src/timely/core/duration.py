"""Active-time calculation for sessions."""

from datetime import datetime, timedelta
from typing import Optional

from timely.models.session import Session, ensure_utc, utc_now


def effective_end(session: Session, now: Optional[datetime] = None) -> datetime:
    """Upper bound for duration: the session's end, else the current instant."""
    if session.end is not None:
        return session.end
    return ensure_utc(now) if now is not None else utc_now()


def calculate_total_seconds(session: Session, now: Optional[datetime] = None) -> int:
    """Return the active (unpaused) seconds of ``session``.

    An outstanding pause counts as paused up to the effective end, so a
    paused session's live duration stays constant. The result is clamped at
    zero to absorb clock skew and out-of-order timestamps.
    """
    end = effective_end(session, now)
    active = end - session.start

    for index, paused_at in enumerate(session.pauses):
        resumed_at = session.resumes[index] if index < len(session.resumes) else end
        active -= resumed_at - paused_at

    return max(int(active / timedelta(seconds=1)), 0)
