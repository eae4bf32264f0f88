"""
Timezone utilities for icsmirror.

Converts raw iCalendar date/date-time values into timezone-aware datetimes
and holds the process-wide notion of "local time".
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional
import logging
import time as _time

import pytz
import tzlocal


logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y%m%d"
DATETIME_FORMAT = "%Y%m%dT%H%M%S"

# None means "ask the operating system"
_local_timezone_name: Optional[str] = None


def set_timezone(timezone_name: Optional[str]) -> None:
    """Set the local timezone for the application (None restores the system zone)."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Uses the configured zone if one was set, otherwise the system zone
    as reported by tzlocal.
    """
    if _local_timezone_name:
        try:
            return pytz.timezone(_local_timezone_name)
        except pytz.UnknownTimeZoneError:
            logger.warning("Unknown configured timezone %r, using system zone", _local_timezone_name)

    try:
        return pytz.timezone(tzlocal.get_localzone_name())
    except (pytz.UnknownTimeZoneError, LookupError, ValueError, AttributeError):
        # Last resort: fixed offset from the C library
        if _time.localtime().tm_isdst:
            offset_seconds = -_time.altzone
        else:
            offset_seconds = -_time.timezone
        return pytz.FixedOffset(offset_seconds // 60)


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    Naive datetimes are returned unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(get_local_timezone())
    return dt


def ensure_aware(dt: datetime) -> datetime:
    """Interpret a naive datetime as local time; aware datetimes pass through."""
    if dt.tzinfo is None:
        return get_local_timezone().localize(dt)
    return dt


def _param_values(params: Mapping, name: str) -> list[str]:
    for key, value in params.items():
        if str(key).upper() != name:
            continue
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]
    return []


def _parse_date(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return None
    return pytz.UTC.localize(parsed)


def _resolve_tzid(tzid: str):
    try:
        return pytz.timezone(tzid.strip().lstrip("/"))
    except pytz.UnknownTimeZoneError:
        logger.debug("Unknown TZID %r, falling back to local time", tzid)
        return get_local_timezone()


def resolve_time(value: Any, params: Optional[Mapping] = None) -> tuple[Optional[datetime], bool]:
    """
    Resolve a DTSTART/DTEND style value into an instant.

    Args:
        value: Raw property value, e.g. "20240315" or "20240315T090000Z"
        params: Property parameters (VALUE, TZID); keys are case-insensitive

    Returns:
        (instant, all_day). All-day instants are midnight UTC of the date.
        Unparseable input yields (None, False).
    """
    params = params or {}
    value = str(value or "").strip()

    if any(v.upper() == "DATE" for v in _param_values(params, "VALUE")):
        day = _parse_date(value)
        if day is None:
            return None, False
        return day, True

    tzids = _param_values(params, "TZID")
    tz = _resolve_tzid(tzids[0]) if tzids else get_local_timezone()

    try:
        if value.upper().endswith("Z"):
            naive = datetime.strptime(value[:-1], DATETIME_FORMAT)
            return pytz.UTC.localize(naive), False
        naive = datetime.strptime(value, DATETIME_FORMAT)
        return tz.localize(naive), False
    except ValueError:
        pass

    # Fallback: date without VALUE=DATE
    day = _parse_date(value)
    if day is None:
        return None, False
    return day, True
