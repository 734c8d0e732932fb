"""Clock and local-time helpers.

All scheduling decisions are made against naive datetimes in server local
time, so every timestamp entering the system is normalized here first.
"""
from datetime import datetime, timedelta
from typing import Callable

# Anything that returns "now" as a naive local datetime
Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Default clock: current server local time, without tzinfo."""
    return datetime.now()


def to_local_naive(dt: datetime) -> datetime:
    """Convert an aware datetime to naive server local time.
    
    Naive datetimes are assumed to already be in local time.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed time from start to end in fractional hours."""
    return (end - start) / timedelta(hours=1)


def same_calendar_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def is_minute(now: datetime, hour: int, minute: int = 0) -> bool:
    """True when now falls exactly on hour:minute (seconds ignored)."""
    return now.hour == hour and now.minute == minute
