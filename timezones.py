"""
Calendar-day arithmetic relative to a user's timezone.

Every "today" / "yesterday" comparison in Streakz goes through this module.
Instants are converted to the zone's wall-clock time and truncated to a date;
yesterday is the previous calendar date, never "now minus 24 hours", so DST
transitions cannot shift the boundary.
"""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DAY_FORMAT = '%Y-%m-%d'

# PostgREST trims trailing zeros from fractional seconds ("10:00:00.12345")
FRACTION = re.compile(r'\.(\d+)')


class InvalidTimezone(ValueError):
    """Raised when a timezone identifier does not resolve to a real zone."""

    def __init__(self, name):
        self.name = name
        super().__init__(f'Unknown timezone: {name!r}')


def resolve_timezone(name: str) -> ZoneInfo:
    if not name or not isinstance(name, str):
        raise InvalidTimezone(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezone(name) from e


def is_valid_timezone(name) -> bool:
    try:
        resolve_timezone(name)
        return True
    except InvalidTimezone:
        return False


def _pad_fraction(match):
    return '.' + (match.group(1) + '000000')[:6]


def parse_instant(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    PostgREST emits ``+00:00`` offsets and clients often send a trailing ``Z``;
    both are accepted, as are fractional seconds of any length. Naive values
    are assumed to be UTC. Raises ``ValueError`` for anything else.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if s.endswith('Z') or s.endswith('z'):
            s = s[:-1] + '+00:00'
        s = FRACTION.sub(_pad_fraction, s, count=1)
        dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_instant(dt: datetime) -> str:
    return parse_instant(dt).astimezone(timezone.utc).isoformat()


def parse_day(value: str) -> date:
    return datetime.strptime(value.strip(), DAY_FORMAT).date()


def format_day(d: date) -> str:
    return d.strftime(DAY_FORMAT)


def local_date(instant: Union[str, datetime], tz: str) -> date:
    """Calendar date of ``instant`` as seen on a wall clock in ``tz``."""
    zone = resolve_timezone(tz)
    return parse_instant(instant).astimezone(zone).date()


def today_in(tz: str, now: datetime) -> date:
    return local_date(now, tz)


def day_before(d: date) -> date:
    return d - timedelta(days=1)


def today_string(tz: str, now: datetime) -> str:
    return format_day(today_in(tz, now))


def is_same_local_day(instant: Union[str, datetime], tz: str, now: datetime) -> bool:
    return local_date(instant, tz) == today_in(tz, now)


def is_day_before(day: Optional[str], tz: str, now: datetime) -> bool:
    """True when ``day`` (YYYY-MM-DD) is the calendar day preceding today in ``tz``."""
    if not day:
        return False
    try:
        d = parse_day(day)
    except ValueError:
        return False
    return d == day_before(today_in(tz, now))
