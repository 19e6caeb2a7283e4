"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Sequence

SECONDS_PER_DAY = 24 * 3600


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the data store persists dates"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def window_start(as_of: datetime, days: int) -> datetime:
    """Start of a trailing window of `days` days ending at as_of"""
    return as_of - timedelta(days=days)


def day_key(moment: datetime) -> date:
    """Calendar day a timestamp falls on"""
    return moment.date() if isinstance(moment, datetime) else moment


def consecutive_gaps_days(moments: Sequence[datetime]) -> List[float]:
    """Fractional day gaps between consecutive timestamps (input must be sorted)"""
    return [
        (later - earlier).total_seconds() / SECONDS_PER_DAY
        for earlier, later in zip(moments, moments[1:])
    ]
