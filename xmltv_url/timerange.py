"""
xmltv_url.timerange - Guide window calculation and programme filtering
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, NamedTuple, Optional, Tuple

from .xmltv import Programme

DEFAULT_LENGTH_IN_DAYS = 7
MIN_LENGTH_IN_DAYS = 1
MIN_OFFSET_IN_DAYS = 0
ONE_DAY = timedelta(days=1)


class TimeRange(NamedTuple):
    """Guide window [earliest, latest)"""

    earliest: datetime
    latest: datetime

    @property
    def days(self) -> float:
        return (self.latest - self.earliest) / ONE_DAY


def truncate_to_day(now: datetime) -> datetime:
    """Drop the time of day, keeping the timezone of now"""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def compute_range(now: datetime, offset_days: int, length_days: int) -> TimeRange:
    """
    Calculate the window of programmes to keep

    The window starts at midnight of the day of now, moved forward by
    offset_days (negative offsets count as 0). A non-positive length selects
    the 7 day default; positive lengths are used as given, so requests longer
    than the default are honoured.

    Args:
        now: Reference instant, its timezone decides where midnight falls;
            a naive value is read as UTC
        offset_days: Days to skip from today
        length_days: Number of days to keep, 0 for the default

    Returns:
        TimeRange(earliest, latest)
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    offset = max(offset_days, MIN_OFFSET_IN_DAYS) * ONE_DAY

    length = DEFAULT_LENGTH_IN_DAYS * ONE_DAY
    if length_days > 0:
        length = max(length_days, MIN_LENGTH_IN_DAYS) * ONE_DAY

    earliest = truncate_to_day(now) + offset
    return TimeRange(earliest, earliest + length)


def _is_inside(instant: Optional[datetime], earliest: datetime, latest: datetime) -> bool:
    return instant is not None and earliest < instant < latest


def is_in_range(programme: Programme, earliest: datetime, latest: datetime) -> bool:
    """
    Check whether a programme overlaps the window

    Start or stop strictly inside the window, or a programme spanning the whole
    window. A stop equal to earliest or a start equal to latest does not count.
    """
    if _is_inside(programme.start, earliest, latest):
        return True
    if _is_inside(programme.stop, earliest, latest):
        return True
    return (
        programme.stop is not None and programme.start < earliest and programme.stop > latest
    )


def filter_programmes(
    programmes: Iterable[Programme], time_range: TimeRange
) -> Tuple[Programme, ...]:
    """Keep programmes overlapping time_range, preserving their order"""
    programmes = tuple(programmes)
    kept = tuple(p for p in programmes if is_in_range(p, time_range.earliest, time_range.latest))

    logging.debug(
        "  Kept %d of %d programmes between %s and %s",
        len(kept),
        len(programmes),
        time_range.earliest.isoformat(),
        time_range.latest.isoformat(),
    )
    return kept
