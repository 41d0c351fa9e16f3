"""
Time helpers shared by the services and the API.

All instants are timezone-aware UTC. A "local day" is only ever derived for
bucketing; nothing local is stored.
"""

import datetime
import math
import re
from typing import Any, Callable, Tuple

MAX_OFFSET_MINUTES = 24 * 60
DEFAULT_HISTORY_DAYS = 60
MAX_HISTORY_DAYS = 365

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    """Current instant in UTC"""
    return datetime.datetime.now(datetime.timezone.utc)


def parse_offset_minutes(raw: Any) -> int:
    """
    Coerce a caller-supplied UTC offset to whole minutes.

    Args:
        raw: Query value (string, number or None)

    Returns:
        Minutes east of UTC, truncated toward zero and clamped to +/- 24h.
        Anything non-numeric yields 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value):
        return 0
    return max(-MAX_OFFSET_MINUTES, min(MAX_OFFSET_MINUTES, int(value)))


def parse_history_days(raw: Any, default: int = DEFAULT_HISTORY_DAYS,
                       maximum: int = MAX_HISTORY_DAYS) -> int:
    """
    Coerce the history window length.

    Reads the leading integer, so ``"7.5"`` and ``"12abc"`` give 7 and 12.
    Input without one falls back to ``default``. The result is capped at
    ``maximum``; a negative value is kept and yields an empty history.
    """
    if raw is None or isinstance(raw, bool):
        return default
    match = _LEADING_INT.match(str(raw))
    if match is None:
        return default
    return min(maximum, int(match.group(1)))


def local_day(instant: datetime.datetime, offset_minutes: int) -> datetime.date:
    """Calendar date of ``instant`` shifted by ``offset_minutes``."""
    return (instant + datetime.timedelta(minutes=offset_minutes)).date()


def local_day_bounds(day: datetime.date,
                     offset_minutes: int) -> Tuple[datetime.datetime, datetime.datetime]:
    """
    UTC half-open interval ``[start, end)`` whose instants fall on local ``day``.
    """
    midnight = datetime.datetime.combine(day, datetime.time(), tzinfo=datetime.timezone.utc)
    start = midnight - datetime.timedelta(minutes=offset_minutes)
    return start, start + datetime.timedelta(days=1)


def utc_midnight(instant: datetime.datetime) -> datetime.datetime:
    """Start of the UTC calendar day containing ``instant``"""
    instant = instant.astimezone(datetime.timezone.utc)
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def elapsed_seconds(start: datetime.datetime, end: datetime.datetime) -> int:
    """Whole seconds between two instants; sub-second precision is truncated."""
    return int((end - start).total_seconds())
