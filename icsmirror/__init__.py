"""
icsmirror - local mirror of remote iCalendar feeds

This package provides:
- Configuration and config directory resolution (config.py)
- Data model and error types (models.py)
- Timezone resolution of iCalendar date/date-time values (timezone_utils.py)
- iCalendar codec on top of icalendar (calendar_document.py)
- File-based event storage (event_storage.py)
- Source registry (source_registry.py)
- ICS feed fetching (ics_subscription.py)
- Sync and query engines (sync_engine.py, query_engine.py)
- The front-end operation interface (calendar_manager.py)
"""

__version__ = "0.1.0"

from .config import Config
from .models import (
    CalendarError,
    DuplicateNameError,
    Event,
    FetchError,
    InvalidNameError,
    NoSourcesError,
    NotFoundError,
    ParseError,
    Source,
    StorageError,
    SyncResult,
)
from .event_storage import IcsFileEventStorage
from .source_registry import SourceRegistry
from .sync_engine import SyncEngine
from .query_engine import QueryEngine
from .calendar_manager import CalendarManager

__all__ = [
    'Config',
    'CalendarManager',
    'SourceRegistry',
    'IcsFileEventStorage',
    'SyncEngine',
    'QueryEngine',
    'Source',
    'Event',
    'SyncResult',
    'CalendarError',
    'StorageError',
    'DuplicateNameError',
    'NotFoundError',
    'FetchError',
    'ParseError',
    'NoSourcesError',
    'InvalidNameError',
]
