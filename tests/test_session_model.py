"""Tests for the Session model."""

from datetime import datetime, timedelta, timezone

from timely.models.session import Session, ensure_utc
from timely.models.state import SessionState

from conftest import T0


def test_new_session_is_running():
    session = Session.begin(T0)

    assert session.id
    assert session.start == T0
    assert session.pauses == []
    assert session.resumes == []
    assert session.end is None
    assert session.total_seconds == 0
    assert session.is_active
    assert not session.is_paused
    assert session.state == SessionState.RUNNING


def test_sessions_get_unique_ids():
    assert Session.begin(T0).id != Session.begin(T0).id


def test_paused_iff_outstanding_pause():
    session = Session(start=T0, pauses=[T0 + timedelta(minutes=5)])
    assert session.is_paused
    assert session.state == SessionState.PAUSED

    session = Session(
        start=T0,
        pauses=[T0 + timedelta(minutes=5)],
        resumes=[T0 + timedelta(minutes=10)],
    )
    assert not session.is_paused
    assert session.state == SessionState.RUNNING


def test_ended_session_is_never_paused():
    """An outstanding pause stops counting once the session has ended."""
    session = Session(
        start=T0,
        pauses=[T0 + timedelta(minutes=5)],
        end=T0 + timedelta(minutes=30),
    )

    assert not session.is_active
    assert not session.is_paused
    assert session.state == SessionState.IDLE


def test_timestamps_are_normalized_to_utc():
    naive = datetime(2025, 3, 10, 9, 0, 0)
    plus_two = datetime(2025, 3, 10, 11, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    session = Session(start=naive, pauses=[plus_two], end=plus_two)

    assert session.start == T0
    assert session.start.tzinfo == timezone.utc
    assert session.pauses[0].tzinfo == timezone.utc
    assert session.pauses[0] == T0
    assert session.end.utcoffset() == timedelta(0)


def test_ensure_utc_keeps_instant():
    local = datetime(2025, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))
    assert ensure_utc(local) == datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)
