"""Time bucketing and formatting helpers for tracking data."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"


def _now_like(t: datetime) -> datetime:
    """Current time in the same timezone awareness as ``t``."""
    if t.tzinfo is None:
        return datetime.now()
    return datetime.now(t.tzinfo)


def format_timestamp(t: datetime) -> str:
    """
    Format a datetime as an RFC 3339 UTC timestamp.

    Naive datetimes are treated as UTC.

    Example:
        >>> format_timestamp(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        '2024-01-02T03:04:05Z'
    """
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Raises:
        ValueError: If the string is empty or malformed
    """
    if not value:
        raise ValueError("empty timestamp string")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no timezone offset: {value}")
    return parsed


def parse_date(value: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` date.

    Raises:
        ValueError: If the string is empty or malformed
    """
    if not value:
        raise ValueError("empty date string")
    return datetime.strptime(value, DATE_FORMAT).date()


def start_of_day(t: datetime) -> datetime:
    return datetime.combine(t.date(), time.min, tzinfo=t.tzinfo)


def end_of_day(t: datetime) -> datetime:
    return datetime.combine(t.date(), time.max, tzinfo=t.tzinfo)


def start_of_week(t: datetime) -> datetime:
    """Start of the week containing ``t``; weeks begin on Monday."""
    return start_of_day(t) - timedelta(days=t.weekday())


def start_of_month(t: datetime) -> datetime:
    return start_of_day(t).replace(day=1)


def start_of_year(t: datetime) -> datetime:
    return start_of_day(t).replace(month=1, day=1)


def is_today(t: datetime) -> bool:
    return t.date() == _now_like(t).date()


def is_yesterday(t: datetime) -> bool:
    return t.date() == _now_like(t).date() - timedelta(days=1)


def is_this_week(t: datetime) -> bool:
    week_start = start_of_week(_now_like(t))
    return week_start <= t < week_start + timedelta(days=7)


def is_this_month(t: datetime) -> bool:
    now = _now_like(t)
    return (t.year, t.month) == (now.year, now.month)


def is_within_last(
    t: datetime,
    *,
    days: int = 0,
    hours: int = 0,
    minutes: int = 0,
) -> bool:
    """
    Check whether ``t`` falls inside the trailing window ending now.

    Example:
        is_within_last(event_time, hours=24)
    """
    cutoff = _now_like(t) - timedelta(days=days, hours=hours, minutes=minutes)
    return t > cutoff


def format_duration(d: timedelta) -> str:
    """
    Format a duration compactly, e.g. ``1h30m0s`` or ``250ms``.
    """
    total_ms = int(round(d.total_seconds() * 1000))
    sign = "-" if total_ms < 0 else ""
    total_ms = abs(total_ms)
    if total_ms < 1000:
        return f"{sign}{total_ms}ms"

    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    seconds = rem / 1000
    seconds_text = f"{seconds:g}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds_text}"
    if minutes:
        return f"{sign}{minutes}m{seconds_text}"
    return f"{sign}{seconds_text}"


def _plural(count: int, unit: str) -> str:
    if count == 1:
        return f"1 {unit} ago"
    return f"{count} {unit}s ago"


def format_relative_time(t: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago ``t`` was ("just now", "3 hours ago", ...).

    Months are counted as 30 days and years as 365 days.
    """
    now = now or _now_like(t)
    seconds = (now - t).total_seconds()

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return _plural(int(seconds // 60), "minute")
    if seconds < 86400:
        return _plural(int(seconds // 3600), "hour")
    days = int(seconds // 86400)
    if days < 7:
        return _plural(days, "day")
    if days < 30:
        return _plural(days // 7, "week")
    if days < 365:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")
