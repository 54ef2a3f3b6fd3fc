"""Data models for Timely."""

from .session import Session
from .state import SessionState, TimerState
from .summary import DailySummary, MonthlySummary, WeeklySummary

__all__ = [
    "Session",
    "SessionState",
    "TimerState",
    "DailySummary",
    "WeeklySummary",
    "MonthlySummary",
]
