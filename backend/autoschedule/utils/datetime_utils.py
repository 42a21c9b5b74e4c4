"""
Timezone-aware datetime utilities.

Scheduling math is done on timezone-aware datetimes: instants are stored and
compared in UTC, while work hours, energy windows and week boundaries are
evaluated in the user's local time zone.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to the naive-UTC form used for SQLite columns.

    SQLite DateTime columns drop tzinfo, so values are normalised to UTC
    before the offset is stripped.
    """
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)


def to_local(dt: datetime, time_zone: str) -> datetime:
    """
    Convert an instant to wall-clock time in the given IANA time zone.

    Example:
        >>> to_local(datetime(2024, 1, 20, 0, 0, tzinfo=UTC), "Asia/Tokyo")
        datetime(2024, 1, 20, 9, 0, tzinfo=ZoneInfo("Asia/Tokyo"))
    """
    return ensure_utc(dt).astimezone(ZoneInfo(time_zone))


def js_weekday(dt: datetime) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return (dt.weekday() + 1) % 7


def round_date_up(dt: datetime, minutes: int = 30) -> datetime:
    """
    Round up to the next multiple of `minutes` past the hour.

    Seconds and microseconds are dropped; a datetime that already sits on a
    boundary is returned unchanged.

    Example:
        >>> round_date_up(datetime(2024, 1, 20, 9, 1))
        datetime(2024, 1, 20, 9, 30)
        >>> round_date_up(datetime(2024, 1, 20, 9, 45))
        datetime(2024, 1, 20, 10, 0)
    """
    rounded = dt.replace(second=0, microsecond=0)
    if rounded != dt:
        rounded += timedelta(minutes=1)
    remainder = rounded.minute % minutes
    if remainder:
        rounded += timedelta(minutes=minutes - remainder)
    return rounded


def are_intervals_overlapping(
    left_start: datetime,
    left_end: datetime,
    right_start: datetime,
    right_end: datetime,
) -> bool:
    """
    Check whether two intervals overlap.

    Ends are exclusive: intervals that only touch do not overlap.
    """
    return left_start < right_end and right_start < left_end


def minutes_between(later: datetime, earlier: datetime) -> float:
    """Signed number of minutes from `earlier` to `later`."""
    return (later - earlier).total_seconds() / 60


def whole_hours_between(later: datetime, earlier: datetime) -> int:
    """Signed number of full hours from `earlier` to `later`, truncated toward zero."""
    return int((later - earlier).total_seconds() / 3600)
