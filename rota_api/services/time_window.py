# rota_api/services/time_window.py
"""
Half-open interval helpers shared by the conflict rules and every report.

All intervals are [start, end): two intervals overlap iff
``a_start < b_end and b_start < a_end``. Timestamps are compared as naive UTC.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(ts: datetime) -> datetime:
    """Aware datetimes are converted to UTC and made naive; naive ones are assumed UTC."""
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and b_start < a_end


def day_bucket(ts) -> date:
    if isinstance(ts, datetime):
        return as_utc(ts).date()
    return ts


def day_start(d) -> datetime:
    return datetime.combine(day_bucket(d), time.min)


def expand_date_range(start, end) -> List[date]:
    """Every calendar day from start's date through end's date, inclusive."""
    first, last = day_bucket(start), day_bucket(end)
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def query_window(start_date, end_date) -> Tuple[datetime, datetime]:
    """
    Convert an inclusive [start_date, end_date] request into the half-open
    range [start_date 00:00, end_date + 1 day 00:00) matched against entities.
    """
    return day_start(start_date), day_start(end_date) + timedelta(days=1)


def clamp(start: datetime, end: datetime, window_start: datetime, window_end: datetime):
    return max(start, window_start), min(end, window_end)


def duration_days(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 86400)


def duration_hours(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600)


def add_months(d: date, months: int) -> date:
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))
