"""
Time utility functions for handling timezone conversions and calendar dates.
Audit timestamps are stored in UTC; calendar dates ("today", date ranges,
registration dates) are always taken in the configured local timezone.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

import pytz

from config import TIMEZONE

UTC = pytz.UTC

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DateRange:
    """
    Date filter produced by the range picker.

    start is None: no filter.
    end is None: single-day filter on start.
    both set: inclusive interval [start, end].
    """

    start: Optional[DateLike] = None
    end: Optional[DateLike] = None

    @property
    def is_empty(self) -> bool:
        return self.start is None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None


def local_timezone():
    """Timezone used for calendar dates."""
    return pytz.timezone(TIMEZONE)


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def now_local() -> datetime:
    """Get current datetime in the local timezone."""
    return datetime.now(local_timezone())


def to_local_date(value: DateLike) -> date:
    """
    Calendar day of a date or datetime in the local timezone.
    Aware datetimes are converted to local time first; naive ones are
    taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(local_timezone())
        return value.date()
    return value


def format_local_ymd(value: DateLike) -> str:
    """Format as YYYY-MM-DD from local calendar fields, never via UTC."""
    day = to_local_date(value)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_local_ymd(ymd: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string as a local calendar day. Returns None if invalid."""
    if not ymd or not ymd.strip():
        return None

    parts = ymd.strip().split("-")
    if len(parts) != 3:
        return None

    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError:
        return None


def same_day(first: Optional[DateLike], second: Optional[DateLike]) -> bool:
    """Calendar-date equality, ignoring time of day."""
    if first is None or second is None:
        return False
    return to_local_date(first) == to_local_date(second)


def date_in_range(ymd: Optional[str], date_range: Optional[DateRange]) -> bool:
    """
    Range predicate shared by the analytics engine and the list filters.
    Compares zero-padded YYYY-MM-DD strings lexically.
    """
    if date_range is None or date_range.start is None:
        return True

    ymd = (ymd or "").strip()
    start_str = format_local_ymd(date_range.start)
    if date_range.end is None:
        return ymd == start_str

    end_str = format_local_ymd(date_range.end)
    return start_str <= ymd <= end_str


def iter_days(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield every calendar day from start to end, both inclusive."""
    current = to_local_date(start)
    last = to_local_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def add_months(day: date, months: int) -> date:
    """First day of the month `months` away from the month of `day`."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def format_datetime(dt: Optional[datetime], format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format datetime to UTC string for Google Sheets and the database."""
    if dt is None:
        return ""

    # Convert to UTC if not already
    if dt.tzinfo is None:
        dt = UTC.localize(dt)
    else:
        dt = dt.astimezone(UTC)

    return dt.strftime(format_str)
