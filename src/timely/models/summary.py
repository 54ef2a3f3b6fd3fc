"""Summary projections derived from a set of sessions."""

from typing import List

from pydantic import BaseModel


class DailySummary(BaseModel):
    """Totals for one UTC calendar day."""

    date: str
    total_seconds: int = 0
    session_count: int = 0


class WeeklySummary(BaseModel):
    """Totals for one ISO week, split into regular and overtime hours."""

    week: str  # ISO week key, e.g. "2025-W03"
    week_start: str
    week_end: str
    total_seconds: int = 0
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    session_count: int = 0


class MonthlySummary(BaseModel):
    """Rollup of every session started within one calendar month."""

    year: int
    month: int
    total_seconds: int = 0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    session_count: int = 0
    longest_session_seconds: int = 0
    daily_breakdown: List[DailySummary] = []
    weekly_breakdown: List[WeeklySummary] = []
