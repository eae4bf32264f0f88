"""
SyncEngine - pulls each configured feed and refreshes its stored records.

A sync is a full refresh: whatever the feed no longer contains disappears
from the local mirror.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Optional

from .calendar_document import CalendarDocument
from .config import Config
from .event_storage import EventStorageBackend, StoredEvent
from .ics_subscription import ICSSubscription
from .models import CalendarError, NoSourcesError, Source, SyncResult


logger = logging.getLogger(__name__)


class SyncEngine:
    """Main synchronization engine."""

    def __init__(
        self,
        storage: EventStorageBackend,
        config: Optional[Config] = None,
        document: Optional[CalendarDocument] = None,
    ):
        self.storage = storage
        self.config = config
        self.document = document or CalendarDocument()

    def _subscription(self, source: Source) -> ICSSubscription:
        if self.config is None:
            return ICSSubscription(source)
        return ICSSubscription(
            source,
            timeout=self.config.fetch_timeout,
            user_agent=self.config.user_agent,
        )

    def _serialize(self, source: Source, components) -> list[StoredEvent]:
        records = []
        for component in components:
            uid = self.document.uid_of(component)
            if not uid:
                logger.debug("Skipping event without UID in %s", source.name)
                continue
            try:
                raw = self.document.encode(component)
            except Exception as e:
                logger.warning("Could not serialize event %r of %s: %s", uid, source.name, e)
                continue
            records.append(StoredEvent(uid=uid, source_name=source.name, raw_ical=raw))
        return records

    def sync_one(self, source: Source) -> int:
        """
        Fetch one feed and replace its stored records.

        Returns:
            Number of events persisted.

        Raises:
            FetchError: the feed could not be retrieved
            ParseError: the feed is not a calendar document
            StorageError: the source directory could not be prepared
        """
        data = self._subscription(source).fetch()
        components = self.document.decode(data)
        records = self._serialize(source, components)
        count = self.storage.replace_all(source.name, records)
        logger.debug("%s: %d of %d events stored", source.name, count, len(components))
        return count

    def sync_all(
        self,
        sources: Sequence[Source],
        on_result: Optional[Callable[[SyncResult], None]] = None,
    ) -> list[SyncResult]:
        """
        Sync every source, one at a time in the given order.

        A failing source is recorded in its SyncResult and does not stop
        the others.

        Args:
            sources: Sources in registry order
            on_result: Called after each source, e.g. for progress output

        Raises:
            NoSourcesError: sources is empty
        """
        if not sources:
            raise NoSourcesError("no calendars configured, use 'add' to add one")

        results = []
        for source in sources:
            logger.info("Syncing %s...", source.name)
            try:
                result = SyncResult(source=source.name, count=self.sync_one(source))
            except CalendarError as e:
                logger.warning("Sync of %s failed: %s", source.name, e)
                result = SyncResult(source=source.name, error=e)
            results.append(result)
            if on_result is not None:
                on_result(result)
        return results
