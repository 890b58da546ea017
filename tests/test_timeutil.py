"""Tests for time helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from accesslog_libs import timeutil

UTC = timezone.utc
# Wednesday
SAMPLE = datetime(2024, 5, 8, 15, 30, 45, 123456, tzinfo=UTC)


def test_format_timestamp():
    assert timeutil.format_timestamp(SAMPLE) == "2024-05-08T15:30:45Z"
    assert timeutil.format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00Z"
    offset = timezone(timedelta(hours=2))
    assert timeutil.format_timestamp(datetime(2024, 1, 1, 2, tzinfo=offset)) == "2024-01-01T00:00:00Z"


def test_parse_timestamp():
    parsed = timeutil.parse_timestamp("2024-05-08T15:30:45Z")
    assert parsed == datetime(2024, 5, 8, 15, 30, 45, tzinfo=UTC)
    assert timeutil.parse_timestamp("2024-05-08T17:30:45+02:00") == parsed


@pytest.mark.parametrize("value", ["", "not a time", "2024-05-08T15:30:45"])
def test_parse_timestamp_errors(value):
    with pytest.raises(ValueError):
        timeutil.parse_timestamp(value)


def test_parse_date():
    assert timeutil.parse_date("2024-05-08") == date(2024, 5, 8)
    with pytest.raises(ValueError):
        timeutil.parse_date("")
    with pytest.raises(ValueError):
        timeutil.parse_date("08/05/2024")


def test_day_bounds():
    assert timeutil.start_of_day(SAMPLE) == datetime(2024, 5, 8, tzinfo=UTC)
    end = timeutil.end_of_day(SAMPLE)
    assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999999)
    assert end.tzinfo is UTC


def test_period_starts():
    assert timeutil.start_of_week(SAMPLE) == datetime(2024, 5, 6, tzinfo=UTC)
    assert timeutil.start_of_month(SAMPLE) == datetime(2024, 5, 1, tzinfo=UTC)
    assert timeutil.start_of_year(SAMPLE) == datetime(2024, 1, 1, tzinfo=UTC)


def test_relative_predicates():
    now = datetime.now(UTC)
    assert timeutil.is_today(now)
    assert not timeutil.is_today(now - timedelta(days=2))
    assert timeutil.is_yesterday(now - timedelta(days=1))
    assert timeutil.is_this_week(timeutil.start_of_week(now))
    assert not timeutil.is_this_week(now - timedelta(days=8))
    assert timeutil.is_this_month(timeutil.start_of_month(now))
    assert not timeutil.is_this_month(now - timedelta(days=40))


def test_is_within_last():
    now = datetime.now(UTC)
    assert timeutil.is_within_last(now - timedelta(hours=2), hours=3)
    assert not timeutil.is_within_last(now - timedelta(hours=4), hours=3)
    assert timeutil.is_within_last(now - timedelta(days=1), days=2)


@pytest.mark.parametrize(
    "duration, expected",
    [
        (timedelta(milliseconds=250), "250ms"),
        (timedelta(seconds=1.5), "1.5s"),
        (timedelta(seconds=90), "1m30s"),
        (timedelta(hours=1, minutes=30), "1h30m0s"),
        (timedelta(seconds=-2), "-2s"),
    ],
)
def test_format_duration(duration, expected):
    assert timeutil.format_duration(duration) == expected


@pytest.mark.parametrize(
    "ago, expected",
    [
        (timedelta(seconds=10), "just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=14), "2 weeks ago"),
        (timedelta(days=65), "2 months ago"),
        (timedelta(days=800), "2 years ago"),
    ],
)
def test_format_relative_time(ago, expected):
    assert timeutil.format_relative_time(SAMPLE - ago, now=SAMPLE) == expected
