"""Tests for monthly aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from timely.core.errors import InvalidPeriodError
from timely.core.summary import aggregate, month_bounds, split_overtime, week_key
from timely.models.session import Session


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def finished(start: datetime, seconds: int) -> Session:
    return Session(
        start=start, end=start + timedelta(seconds=seconds), total_seconds=seconds
    )


def test_empty_month():
    summary = aggregate([], 2025, 3)

    assert summary.year == 2025
    assert summary.month == 3
    assert summary.total_seconds == 0
    assert summary.session_count == 0
    assert summary.longest_session_seconds == 0
    assert summary.regular_hours == 0
    assert summary.overtime_hours == 0
    assert summary.daily_breakdown == []
    assert summary.weekly_breakdown == []


def test_sessions_outside_month_are_ignored():
    sessions = [
        finished(utc(2025, 2, 28, 23, 59, 59), 100),
        finished(utc(2025, 3, 1, 0, 0, 0), 200),
        finished(utc(2025, 3, 31, 23, 59, 59), 300),
        finished(utc(2025, 4, 1, 0, 0, 0), 400),
    ]

    summary = aggregate(sessions, 2025, 3)

    assert summary.session_count == 2
    assert summary.total_seconds == 500


def test_daily_breakdown_sorted_and_summed():
    sessions = [
        finished(utc(2025, 3, 12, 14), 1800),
        finished(utc(2025, 3, 10, 9), 3600),
        finished(utc(2025, 3, 10, 13), 600),
    ]

    summary = aggregate(sessions, 2025, 3)

    assert [(d.date, d.total_seconds, d.session_count) for d in summary.daily_breakdown] == [
        ("2025-03-10", 4200, 2),
        ("2025-03-12", 1800, 1),
    ]
    assert summary.longest_session_seconds == 3600


def test_two_long_sessions_in_one_week_make_overtime():
    """Two 21h sessions in the same ISO week: 42h -> 40 regular, 2 overtime."""
    sessions = [
        finished(utc(2025, 3, 10, 0), 75600),
        finished(utc(2025, 3, 12, 0), 75600),
    ]

    summary = aggregate(sessions, 2025, 3)

    assert len(summary.weekly_breakdown) == 1
    week = summary.weekly_breakdown[0]
    assert week.week == "2025-W11"
    assert week.week_start == "2025-03-10"
    assert week.week_end == "2025-03-16"
    assert week.total_hours == pytest.approx(42.0)
    assert week.regular_hours == pytest.approx(40.0)
    assert week.overtime_hours == pytest.approx(2.0)
    assert week.session_count == 2

    assert summary.overtime_hours == pytest.approx(2.0)
    assert summary.regular_hours == pytest.approx(40.0)


def test_weekly_breakdown_sorted_by_week():
    sessions = [
        finished(utc(2025, 3, 24, 9), 3600),
        finished(utc(2025, 3, 3, 9), 3600),
        finished(utc(2025, 3, 17, 9), 3600),
    ]

    summary = aggregate(sessions, 2025, 3)

    assert [w.week for w in summary.weekly_breakdown] == ["2025-W10", "2025-W12", "2025-W13"]


def test_iso_week_year_differs_from_calendar_year():
    # 2021-01-01 is a Friday in ISO week 2020-W53
    summary = aggregate([finished(utc(2021, 1, 1, 9), 3600)], 2021, 1)

    week = summary.weekly_breakdown[0]
    assert week.week == "2020-W53"
    assert week.week_start == "2020-12-28"
    assert week.week_end == "2021-01-03"


def test_monthly_regular_is_total_minus_weekly_overtime():
    """Monthly regular hours are the month total less summed weekly overtime."""
    sessions = [
        # Week 2025-W10: 45h -> 5h overtime
        finished(utc(2025, 3, 3, 0), 45 * 3600),
        # Week 2025-W11: 10h, no overtime
        finished(utc(2025, 3, 10, 0), 10 * 3600),
    ]

    summary = aggregate(sessions, 2025, 3)

    assert summary.overtime_hours == pytest.approx(5.0)
    assert summary.regular_hours == pytest.approx(55.0 - 5.0)
    assert sum(w.regular_hours for w in summary.weekly_breakdown) == pytest.approx(50.0)


def test_week_straddling_month_only_counts_this_month():
    # 2025-W14 runs from Monday 2025-03-31 to Sunday 2025-04-06
    sessions = [
        finished(utc(2025, 3, 31, 0), 30 * 3600),
        finished(utc(2025, 4, 1, 0), 30 * 3600),
    ]

    march = aggregate(sessions, 2025, 3)
    april = aggregate(sessions, 2025, 4)

    assert march.weekly_breakdown[0].week == "2025-W14"
    assert march.overtime_hours == 0
    assert april.overtime_hours == 0
    assert march.total_seconds == april.total_seconds == 30 * 3600


def test_active_sessions_contribute_cached_total():
    active = Session(start=utc(2025, 3, 10, 9))

    summary = aggregate([active], 2025, 3)

    assert summary.session_count == 1
    assert summary.total_seconds == 0


def test_duplicate_sessions_count_once():
    session = finished(utc(2025, 3, 10, 9), 3600)

    summary = aggregate([session, session], 2025, 3)

    assert summary.session_count == 1
    assert summary.total_seconds == 3600


def test_custom_weekly_threshold():
    summary = aggregate([finished(utc(2025, 3, 10, 0), 38 * 3600)], 2025, 3, 37.5)

    assert summary.weekly_breakdown[0].overtime_hours == pytest.approx(0.5)


@pytest.mark.parametrize("month", [0, 13, -1])
def test_invalid_month(month):
    with pytest.raises(InvalidPeriodError):
        aggregate([], 2025, month)


def test_invalid_year():
    with pytest.raises(InvalidPeriodError):
        month_bounds(10000, 1)
    with pytest.raises(InvalidPeriodError):
        month_bounds(0, 1)


def test_last_representable_month():
    start, end = month_bounds(9999, 12)

    assert start == utc(9999, 12, 1)
    assert end == datetime.max.replace(tzinfo=timezone.utc)


def test_summary_of_last_representable_month():
    summary = aggregate([finished(utc(9999, 12, 31, 8), 3600)], 9999, 12)

    assert summary.total_seconds == 3600
    assert summary.daily_breakdown[0].date == "9999-12-31"
    week = summary.weekly_breakdown[0]
    assert week.week == "9999-W52"
    assert week.week_start == "9999-12-27"
    assert week.week_end == "9999-12-31"


def test_month_bounds_december():
    start, end = month_bounds(2024, 12)

    assert start == utc(2024, 12, 1)
    assert end == utc(2025, 1, 1)


def test_split_overtime():
    assert split_overtime(39.0) == (39.0, 0.0)
    assert split_overtime(40.0) == (40.0, 0.0)
    assert split_overtime(41.5) == (40.0, 1.5)


def test_week_key_is_zero_padded():
    assert week_key(2025, 3) == "2025-W03"
