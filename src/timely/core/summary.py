"""Daily, weekly and monthly rollups of tracked sessions."""

from collections import defaultdict
from datetime import MAXYEAR, date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Tuple

from timely.core.errors import InvalidPeriodError
from timely.models.session import Session
from timely.models.summary import DailySummary, MonthlySummary, WeeklySummary

SECONDS_PER_HOUR = 3600
WEEKLY_THRESHOLD_HOURS = 40.0


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Return ``[first instant of month, first instant of next month)`` in UTC.

    December 9999 has no next month, so its end is ``datetime.max`` in UTC.
    """
    if not 1 <= month <= 12:
        raise InvalidPeriodError(year, month)

    try:
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12 and year == MAXYEAR:
            end = datetime.max.replace(tzinfo=timezone.utc)
        elif month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    except (ValueError, OverflowError) as e:
        raise InvalidPeriodError(year, month) from e

    return start, end


def week_key(iso_year: int, iso_week: int) -> str:
    return f"{iso_year:04d}-W{iso_week:02d}"


def split_overtime(
    total_hours: float, threshold_hours: float = WEEKLY_THRESHOLD_HOURS
) -> Tuple[float, float]:
    """Split a week's hours into (regular, overtime)."""
    regular = min(total_hours, threshold_hours)
    overtime = max(total_hours - threshold_hours, 0.0)
    return regular, overtime


def aggregate(
    sessions: Iterable[Session],
    year: int,
    month: int,
    weekly_threshold_hours: float = WEEKLY_THRESHOLD_HOURS,
) -> MonthlySummary:
    """Summarize the sessions that started within ``year``/``month``.

    Sessions are bucketed by the UTC date and the ISO week of their start.
    The month's overtime is the sum of its weekly overtime, and its regular
    hours are whatever remains of the month total. Weeks that straddle a
    month boundary therefore only contribute the sessions of this month.

    Raises:
        InvalidPeriodError: if ``month`` is outside 1-12 or the year is out
            of range.
    """
    month_bounds(year, month)

    # Duplicate ids collapse to one session, last one wins
    unique = {session.id: session for session in sessions}
    in_month = [
        s for s in unique.values() if (s.start.year, s.start.month) == (year, month)
    ]

    daily: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    weekly: Dict[Tuple[int, int], List[int]] = defaultdict(lambda: [0, 0])

    for session in in_month:
        day = daily[session.start.date().isoformat()]
        day[0] += session.total_seconds
        day[1] += 1

        iso_year, iso_week, _ = session.start.isocalendar()
        week = weekly[(iso_year, iso_week)]
        week[0] += session.total_seconds
        week[1] += 1

    daily_breakdown = [
        DailySummary(date=day, total_seconds=seconds, session_count=count)
        for day, (seconds, count) in sorted(daily.items())
    ]
    weekly_breakdown = [
        _summarize_week(iso_year, iso_week, seconds, count, weekly_threshold_hours)
        for (iso_year, iso_week), (seconds, count) in sorted(weekly.items())
    ]

    total_seconds = sum(s.total_seconds for s in in_month)
    overtime_hours = sum(week.overtime_hours for week in weekly_breakdown)

    return MonthlySummary(
        year=year,
        month=month,
        total_seconds=total_seconds,
        regular_hours=total_seconds / SECONDS_PER_HOUR - overtime_hours,
        overtime_hours=overtime_hours,
        session_count=len(in_month),
        longest_session_seconds=max((s.total_seconds for s in in_month), default=0),
        daily_breakdown=daily_breakdown,
        weekly_breakdown=weekly_breakdown,
    )


def _summarize_week(
    iso_year: int, iso_week: int, seconds: int, count: int, threshold_hours: float
) -> WeeklySummary:
    monday = date.fromisocalendar(iso_year, iso_week, 1)
    # The last ISO week of year 9999 runs past date.max
    sunday = monday + timedelta(days=min(6, (date.max - monday).days))
    total_hours = seconds / SECONDS_PER_HOUR
    regular_hours, overtime_hours = split_overtime(total_hours, threshold_hours)
    return WeeklySummary(
        week=week_key(iso_year, iso_week),
        week_start=monday.isoformat(),
        week_end=sunday.isoformat(),
        total_seconds=seconds,
        total_hours=total_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        session_count=count,
    )
