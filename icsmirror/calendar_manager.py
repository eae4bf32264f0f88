"""
CalendarManager - the operation interface used by front-ends.

Wires the source registry, event storage, sync engine and query engine
together for one configuration directory. All rendering is left to the
caller.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import Config
from .event_storage import EventStorageBackend, create_storage_backend
from .models import Event, Source, SyncResult
from .query_engine import QueryEngine
from .source_registry import SourceRegistry
from .sync_engine import SyncEngine
from .timezone_utils import set_timezone


class CalendarManager:
    """Handles calendar source management, syncing and event retrieval."""

    def __init__(self, config: Config, storage: Optional[EventStorageBackend] = None):
        self.config = config
        self.storage = storage or create_storage_backend(config.events_dir)
        self.registry = SourceRegistry(config.sources_file, self.storage)
        self.sync_engine = SyncEngine(self.storage, config)
        self.query_engine = QueryEngine(self.registry, self.storage)

    @classmethod
    def open(cls, config_dir: Optional[Path] = None) -> 'CalendarManager':
        """
        Load configuration for a directory and make sure it exists.

        Also applies the configured local timezone.
        """
        config = Config.load(config_dir)
        config.ensure_dir()
        if config.timezone:
            set_timezone(config.timezone)
        return cls(config)

    # ==================== Sources ====================

    def list_sources(self) -> list[Source]:
        return self.registry.load()

    def add_source(self, name: str, url: str) -> Source:
        return self.registry.add(name, url)

    def remove_source(self, name: str) -> None:
        self.registry.remove(name)

    # ==================== Sync ====================

    def sync_all(self, on_result: Optional[Callable[[SyncResult], None]] = None) -> list[SyncResult]:
        """Sync all configured sources in registry order."""
        return self.sync_engine.sync_all(self.registry.load(), on_result=on_result)

    # ==================== Events ====================

    def list_events(
        self,
        from_: Optional[datetime] = None,
        to: Optional[datetime] = None,
    ) -> list[Event]:
        return self.query_engine.list_events(from_, to)

    def get_event(self, uid: str) -> tuple[Event, bytes]:
        return self.query_engine.get_event(uid)

    def get_event_ics(self, event: Event) -> bytes:
        """Get the stored record of an event exactly as it was written."""
        return self.storage.get_raw(event.calendar, event.uid)
