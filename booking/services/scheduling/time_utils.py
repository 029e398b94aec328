# ============================================================================
# booking/services/scheduling/time_utils.py
# Wall-clock <-> absolute instant conversion in a business timezone
# ============================================================================
"""
Every rule and exception is written as "HH:MM" in the business timezone.
These helpers pin such strings to a calendar date and hand back aware UTC
datetimes, so the rest of the engine compares absolute instants only.
"""
import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking.config.settings import get_settings

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")

# Rules are validated on this date at creation time, before any timezone applies
REFERENCE_DATE = date(2020, 1, 1)


class Interval(NamedTuple):
    """Open-for-business range on one calendar day, in absolute time."""
    start: datetime
    end: datetime


class Slot(NamedTuple):
    """Bookable range of exactly one service duration."""
    start: datetime
    end: datetime


def get_timezone(name: Optional[str]) -> ZoneInfo:
    """Get a ZoneInfo timezone, falling back to the configured default."""
    fallback = get_settings().DEFAULT_TIMEZONE
    if not name:
        return ZoneInfo(fallback)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone '{name}', using {fallback}")
        return ZoneInfo(fallback)


def is_valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def to_utc(value: datetime) -> datetime:
    """Normalize to aware UTC. Naive values come back from the store and are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_hhmm(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse "HH:MM" into (hour, minute); None when it is not a real wall-clock time."""
    if not isinstance(value, str):
        return None
    match = _HHMM.match(value.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def weekday_index(moment: Union[date, datetime], tz: ZoneInfo) -> int:
    """
    Day of week with 0 = Sunday, matching AvailabilityRule.day_of_week.

    Aware datetimes are first moved into the business timezone so a booking
    near midnight lands on the business's day, not the caller's.
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=tz)
        moment = moment.astimezone(tz).date()
    return moment.isoweekday() % 7


def local_instant(day: date, hour: int, minute: int, tz: ZoneInfo) -> datetime:
    """Apply a wall-clock time to a calendar day in tz and return it in UTC."""
    return datetime.combine(day, time(hour, minute), tzinfo=tz).astimezone(timezone.utc)


def resolve_day_interval(
        day: date,
        tz: ZoneInfo,
        start_time: Optional[str],
        end_time: Optional[str]
) -> Optional[Interval]:
    """
    Build the absolute interval for start_time..end_time on day in tz.

    Returns None for unparseable times or when end is not after start. The
    range is never clamped or guessed.
    """
    start_parts = parse_hhmm(start_time)
    end_parts = parse_hhmm(end_time)
    if start_parts is None or end_parts is None:
        return None

    start = local_instant(day, start_parts[0], start_parts[1], tz)
    end = local_instant(day, end_parts[0], end_parts[1], tz)
    if end <= start:
        return None
    return Interval(start, end)


def validate_time_range(start_time: Optional[str], end_time: Optional[str]) -> bool:
    """Creation-time check for a rule or exception range (reference date, UTC)."""
    return resolve_day_interval(REFERENCE_DATE, ZoneInfo("UTC"), start_time, end_time) is not None


def day_bounds(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """UTC instants of the local start of day and of the next local day."""
    start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return start, end


def parse_calendar_date(value: Union[str, date, None], tz: ZoneInfo) -> Optional[date]:
    """
    Read a business calendar date from "YYYY-MM-DD" or a full ISO-8601 instant.
    Instants are converted into tz first. Returns None when unparseable.
    """
    if isinstance(value, datetime):
        return _local_date(value, tz)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return _local_date(datetime.fromisoformat(raw), tz)
    except ValueError:
        return None


def _local_date(value: datetime, tz: ZoneInfo) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()


def parse_instant(value: Union[str, datetime, None], tz: ZoneInfo) -> Optional[datetime]:
    """
    Parse an ISO-8601 booking start. Values without an offset are wall-clock
    times in the business timezone. Returns an aware datetime in tz, or None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)
