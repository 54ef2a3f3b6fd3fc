"""Shared fixtures for Timely tests."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from timely.core.store import JsonSessionStore

T0 = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning aware UTC instants."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for a store."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir) / "timely"


@pytest.fixture
def store(temp_data_dir):
    """An initialized store without git history."""
    store = JsonSessionStore(temp_data_dir, history=False)
    store.init()
    return store


@pytest.fixture
def clock():
    return FakeClock()
