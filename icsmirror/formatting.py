"""
Text and JSON projections of events and sources.
"""

import json
from datetime import datetime
from typing import Optional

from .models import Event, Source
from .timezone_utils import to_local_datetime


DATE_DISPLAY = "%a, %d %b %Y"
DATETIME_DISPLAY = "%a, %d %b %Y %H:%M %Z"


def _iso(dt: Optional[datetime], all_day: bool) -> Optional[str]:
    if dt is None:
        return None
    if all_day:
        return dt.date().isoformat()
    return dt.isoformat()


def event_to_dict(event: Event) -> dict:
    return {
        "uid": event.uid,
        "summary": event.summary,
        "description": event.description,
        "location": event.location,
        "start": _iso(event.start, event.all_day),
        "end": _iso(event.end, event.all_day),
        "calendar": event.calendar,
        "all_day": event.all_day,
    }


def format_event_json(event: Event) -> str:
    return json.dumps(event_to_dict(event), indent=2, ensure_ascii=False)


def format_events_json(events: list[Event]) -> str:
    return json.dumps([event_to_dict(e) for e in events], indent=2, ensure_ascii=False)


def format_sources_json(sources: list[Source]) -> str:
    return json.dumps([s.to_dict() for s in sources], indent=2, ensure_ascii=False)


def format_event_time(event: Event) -> str:
    """Short start time for table rows."""
    if event.start is None:
        return ""
    if event.all_day:
        return event.start.strftime("%Y-%m-%d") + " (all day)"
    return to_local_datetime(event.start).strftime("%Y-%m-%d %H:%M")


def format_event(event: Event) -> str:
    """Return a human-readable representation of an event."""
    lines = [
        f"Summary:     {event.summary}",
        f"Calendar:    {event.calendar}",
    ]
    if event.all_day:
        if event.start is not None:
            lines.append(f"Date:        {event.start.strftime(DATE_DISPLAY)}")
        if event.end is not None and event.end != event.start:
            lines.append(f"End:         {event.end.strftime(DATE_DISPLAY)}")
    else:
        if event.start is not None:
            lines.append(f"Start:       {to_local_datetime(event.start).strftime(DATETIME_DISPLAY)}")
        if event.end is not None:
            lines.append(f"End:         {to_local_datetime(event.end).strftime(DATETIME_DISPLAY)}")
    if event.location:
        lines.append(f"Location:    {event.location}")
    if event.description:
        lines.append(f"Description: {event.description}")
    lines.append(f"UID:         {event.uid}")
    return "\n".join(lines) + "\n"
