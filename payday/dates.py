"""Date-only helpers.

Pay dates are stored as ``YYYY-MM-DD`` strings and compared as naive local
midnights, so a date typed by the user never shifts by a day when it crosses a
UTC offset. Nothing in here raises on malformed input; parsing returns ``None``
and callers fall back to their own defaults.
"""
import math
import re
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DAY = timedelta(days=1)

_DATE_ONLY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

MIN_YEAR = MINYEAR + 1
MAX_YEAR = MAXYEAR - 1

DateLike = Union[str, date, datetime, None]


def start_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def _to_local_naive(instant: datetime) -> datetime:
    if instant.tzinfo is not None:
        return instant.astimezone().replace(tzinfo=None)
    return instant


def _within_range(instant: Optional[datetime]) -> Optional[datetime]:
    # leaves room for the 30-day lookback and a one-month step at either end
    if instant is None or not MIN_YEAR <= instant.year <= MAX_YEAR:
        return None
    return instant


def parse_date_only(value: DateLike) -> Optional[datetime]:
    """Parse ``value`` into a naive local-midnight datetime, or ``None``."""
    try:
        return _within_range(_parse(value))
    except (ValueError, OverflowError):
        return None


def _parse(value: DateLike) -> Optional[datetime]:
    if isinstance(value, datetime):
        return start_of_day(_to_local_naive(value))
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    match = _DATE_ONLY.match(value.strip())
    if match:
        year, month, day = (int(part) for part in match.groups())
        # out-of-range month/day components roll over into the next period
        return datetime(year, 1, 1) + relativedelta(months=month - 1) + timedelta(days=day - 1)

    parsed = date_parser.parse(value)
    return start_of_day(_to_local_naive(parsed))


def format_date_only(instant: Union[date, datetime]) -> str:
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def days_between(start: datetime, end: datetime) -> float:
    return (start_of_day(end) - start_of_day(start)) / DAY


def days_between_ceil(start: datetime, end: datetime) -> int:
    return math.ceil(days_between(start, end))


def days_between_floor(start: datetime, end: datetime) -> int:
    return math.floor(days_between(start, end))


def days_between_round(start: datetime, end: datetime) -> int:
    return math.floor(days_between(start, end) + 0.5)


def add_days(instant: datetime, days: int) -> datetime:
    return instant + timedelta(days=days)


def add_months(instant: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    return instant + relativedelta(months=months)
