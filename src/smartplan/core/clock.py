# src/smartplan/core/clock.py

"""
Local wall-clock helpers.

All stored date-times are naive local time: the retention cutoff is local
midnight, so aware values are converted to the local zone at the boundary.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta


def system_now() -> datetime:
    return datetime.now()


def to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def next_day(d: date) -> date:
    return d + timedelta(days=1)


def to_iso(dt: datetime) -> str:
    return to_local_naive(dt).isoformat()


def from_iso(s: str) -> datetime:
    return to_local_naive(datetime.fromisoformat(s))


def parse_when(value: object) -> datetime:
    """
    Accept a datetime, a date, or an ISO string ("YYYY-MM-DD" or full
    date-time). Bare dates map to local midnight.
    """
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), time.min)
        return from_iso(raw.replace("Z", "+00:00"))
    raise ValueError(f"not a date/time: {value!r}")
