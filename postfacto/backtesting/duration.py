"""
Date arithmetic for ledger statistics.

Timestamps may be ISO date or datetime strings, datetime/date objects or
pandas Timestamps. Anything unparsable is treated as unknown.
"""

from typing import Any, Optional

import pandas as pd

SECONDS_IN_A_DAY = 86400


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """Parse a timestamp into a naive (UTC) pandas Timestamp, or None."""
    if value is None or isinstance(value, (bool, int, float)):
        return None
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(timestamp):
        return None
    if timestamp.tzinfo is not None:
        timestamp = timestamp.tz_convert("UTC").tz_localize(None)
    return timestamp


def calendar_days_between(start: Any, end: Any) -> int:
    """Whole calendar days from start to end; 0 when either side is unknown."""
    start_ts = parse_timestamp(start)
    end_ts = parse_timestamp(end)
    if start_ts is None or end_ts is None:
        return 0
    return (end_ts.normalize() - start_ts.normalize()).days


def elapsed_days(start: Any, end: Any) -> Optional[float]:
    """
    Days elapsed from start to end.

    Same-day spans return a fraction of a day; longer spans count whole days.
    Returns None when either side is unknown.
    """
    start_ts = parse_timestamp(start)
    end_ts = parse_timestamp(end)
    if start_ts is None or end_ts is None:
        return None

    delta = end_ts - start_ts
    if start_ts.normalize() == end_ts.normalize():
        return delta.total_seconds() / SECONDS_IN_A_DAY
    return float(int(delta.total_seconds() / SECONDS_IN_A_DAY))
