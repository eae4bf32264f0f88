"""
iCalendar document codec built on the icalendar library.

Decodes feeds into VEVENT components, wraps single components into their
own VCALENDAR envelope, and projects components onto the Event model.
"""

from typing import Union
import logging

from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .models import Event, ParseError
from .timezone_utils import resolve_time


logger = logging.getLogger(__name__)

PRODUCT_ID = "-//icsmirror//icsmirror//EN"
ICAL_VERSION = "2.0"


def parse_icalendar(data: Union[bytes, str]) -> ICalCalendar:
    """
    Parse iCalendar text into an icalendar.Calendar object.

    Raises:
        ParseError: the data is not a single decodable calendar
    """
    if not data or not data.strip():
        raise ParseError("empty calendar document")
    try:
        return ICalCalendar.from_ical(data)
    except Exception as e:
        raise ParseError(f"invalid calendar document: {e}") from e


def decode_events(data: Union[bytes, str]) -> list[ICalEvent]:
    """Decode a calendar document and return its VEVENT components."""
    return parse_icalendar(data).walk('VEVENT')


def encode_event(event: ICalEvent) -> bytes:
    """Wrap one VEVENT in its own VCALENDAR so the result is a valid document."""
    vcal = ICalCalendar()
    vcal.add('prodid', PRODUCT_ID)
    vcal.add('version', ICAL_VERSION)
    vcal.add_component(event)
    return vcal.to_ical()


def get_uid(component: ICalEvent) -> str:
    """Get the component's UID, or "" if it has none."""
    uid = component.get('UID')
    if isinstance(uid, list):
        uid = uid[0] if uid else None
    return str(uid).strip() if uid is not None else ''


def _text(component: ICalEvent, name: str) -> str:
    value = component.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value) if value is not None else ''


def component_time(component: ICalEvent, name: str):
    """
    Resolve a date/date-time property of a component.

    Returns:
        (datetime or None, all_day); (None, False) when the property is absent
    """
    prop = component.get(name)
    if isinstance(prop, list):
        prop = prop[0] if prop else None
    if prop is None:
        return None, False

    try:
        raw = prop.to_ical()
    except (ValueError, TypeError, AttributeError):
        logger.debug("Cannot serialize %s value %r", name, prop)
        return None, False
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')

    params = getattr(prop, 'params', None) or {}
    return resolve_time(raw, params)


def to_event(component: ICalEvent, calendar_name: str) -> Event:
    """Project a VEVENT component onto the Event model."""
    start, all_day = component_time(component, 'DTSTART')
    end, _ = component_time(component, 'DTEND')
    return Event(
        uid=get_uid(component),
        summary=_text(component, 'SUMMARY'),
        description=_text(component, 'DESCRIPTION'),
        location=_text(component, 'LOCATION'),
        start=start,
        end=end,
        calendar=calendar_name,
        all_day=all_day,
    )


def read_event(data: Union[bytes, str], calendar_name: str) -> Event:
    """
    Decode a stored single-event record.

    Raises:
        ParseError: the record is corrupt or holds no VEVENT
    """
    events = decode_events(data)
    if not events:
        raise ParseError("no events in record")
    return to_event(events[0], calendar_name)


class CalendarDocument:
    """Codec object handed to the sync engine and event storage."""

    def decode(self, data: Union[bytes, str]) -> list[ICalEvent]:
        return decode_events(data)

    def encode(self, component: ICalEvent) -> bytes:
        return encode_event(component)

    def uid_of(self, component: ICalEvent) -> str:
        return get_uid(component)

    def read_event(self, data: Union[bytes, str], calendar_name: str) -> Event:
        return read_event(data, calendar_name)
