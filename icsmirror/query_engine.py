"""
Read-only queries over the local mirror.

Never touches the network; every call re-reads the registry and the
stored records.
"""

import logging
from datetime import datetime, time
from typing import Optional

import pytz

from .event_storage import EventStorageBackend
from .models import Event, NotFoundError, StorageError
from .source_registry import SourceRegistry
from .timezone_utils import ensure_aware, get_local_timezone


logger = logging.getLogger(__name__)

# Sorts events without a start before everything else
_NO_START = datetime.min.replace(tzinfo=pytz.UTC)


def effective_start(event: Event) -> Optional[datetime]:
    """
    Start instant used for filtering and ordering.

    All-day events begin at local midnight of their calendar date.
    """
    if event.start is None or not event.all_day:
        return event.start
    return get_local_timezone().localize(datetime.combine(event.start.date(), time()))


def event_sort_key(event: Event) -> tuple:
    """Order by start; equal starts by calendar name, then UID."""
    start = effective_start(event)
    return (start is not None, start or _NO_START, event.calendar, event.uid)


def in_range(event: Event, from_: Optional[datetime], to: Optional[datetime]) -> bool:
    """
    Check whether an event starts within [from_, to].

    A None bound is unbounded. An event without a start is before any
    lower bound.
    """
    start = effective_start(event)
    if from_ is not None and (start is None or start < from_):
        return False
    if to is not None and start is not None and start > to:
        return False
    return True


class QueryEngine:
    """Aggregates stored events across every configured source."""

    def __init__(self, registry: SourceRegistry, storage: EventStorageBackend):
        self.registry = registry
        self.storage = storage

    def list_events(
        self,
        from_: Optional[datetime] = None,
        to: Optional[datetime] = None,
    ) -> list[Event]:
        """
        Get events starting within [from_, to] from all sources.

        Args:
            from_: Lower bound, or None for unbounded (naive = local time)
            to: Upper bound, or None for unbounded (naive = local time)

        Returns:
            Events sorted ascending by start.
        """
        if from_ is not None:
            from_ = ensure_aware(from_)
        if to is not None:
            to = ensure_aware(to)

        events = []
        for source in self.registry.load():
            try:
                events.extend(self.storage.list_all(source.name))
            except StorageError as e:
                logger.debug("Skipping calendar %s: %s", source.name, e)

        filtered = [e for e in events if in_range(e, from_, to)]
        filtered.sort(key=event_sort_key)
        return filtered

    def get_event(self, uid: str) -> tuple[Event, bytes]:
        """
        Find an event by UID across all calendars.

        Sources are searched in registry order and the first match wins.

        Returns:
            (event, raw record bytes)

        Raises:
            NotFoundError: no source holds this UID
        """
        for source in self.registry.load():
            try:
                for event, raw in self.storage.iter_records(source.name):
                    if event.uid == uid:
                        return event, raw
            except StorageError as e:
                logger.debug("Skipping calendar %s: %s", source.name, e)
        raise NotFoundError(f"event {uid!r} not found")
