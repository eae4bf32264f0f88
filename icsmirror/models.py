"""
Data models and error types for icsmirror.

Pure data - no I/O, no icalendar imports.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional


class CalendarError(Exception):
    """Base exception for all icsmirror errors."""
    pass


class StorageError(CalendarError, OSError):
    """Registry or event file could not be read or written."""
    pass


class DuplicateNameError(CalendarError):
    """A source with the same name is already configured."""
    pass


class NotFoundError(CalendarError):
    """No source or event matches the requested name/uid."""
    pass


class FetchError(CalendarError):
    """The remote feed could not be retrieved."""
    pass


class ParseError(CalendarError):
    """A feed or stored record is not a decodable calendar document."""
    pass


class NoSourcesError(CalendarError):
    """An operation needs at least one configured source."""
    pass


class InvalidNameError(CalendarError, ValueError):
    """A source name cannot be used as a directory name."""
    pass


def is_valid_source_name(name: str) -> bool:
    """A name must be a single, non-empty path component."""
    if not name or name in (".", ".."):
        return False
    return not any(c in name for c in ("/", "\\", "\0"))


@dataclass
class Source:
    """A configured, named calendar feed."""
    name: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Source':
        return cls(name=str(data["name"]), url=str(data["url"]))


@dataclass
class Event:
    """
    One calendar event as projected from a stored record.

    ``start``/``end`` are timezone-aware, or None when the property is
    absent or unparseable. All-day events carry midnight UTC of their date.
    """
    uid: str
    summary: str = ""
    description: str = ""
    location: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    calendar: str = ""
    all_day: bool = False

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the logical event: (calendar, uid)."""
        return (self.calendar, self.uid)


@dataclass
class SyncResult:
    """Outcome of syncing one source."""
    source: str
    count: int = 0
    error: Optional[CalendarError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
