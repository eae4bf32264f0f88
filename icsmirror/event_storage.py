"""
Persistent Event Storage for icsmirror.

Abstract base class and a file implementation storing one single-event
.ics document per event:

    {config_dir}/events/{source_name}/{sanitized_uid}.ics
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .calendar_document import CalendarDocument
from .models import Event, NotFoundError, ParseError, StorageError, is_valid_source_name


logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".ics"

_FILENAME_REPLACEMENTS = [
    ("/", "_"), ("\\", "_"), (":", "_"), ("*", "_"), ("?", "_"),
    ('"', "_"), ("<", "_"), (">", "_"), ("|", "_"), ("@", "_at_"),
]


def sanitize_filename(uid: str) -> str:
    """Map a UID onto a filename stem without path-hostile characters."""
    for char, replacement in _FILENAME_REPLACEMENTS:
        uid = uid.replace(char, replacement)
    return uid


@dataclass
class StoredEvent:
    """One serialized single-event calendar document, ready to be written."""
    uid: str
    source_name: str
    raw_ical: bytes


class EventStorageBackend(ABC):
    """
    Abstract base class for event storage backends.

    The sync engine is the only writer; queries only read.
    """

    @abstractmethod
    def replace_all(self, source_name: str, records: Iterable[StoredEvent]) -> int:
        """Replace every stored record of a source. Returns the number written."""
        pass

    @abstractmethod
    def list_all(self, source_name: str) -> list[Event]:
        """Decode every readable record of a source."""
        pass

    @abstractmethod
    def iter_records(self, source_name: str) -> Iterator[tuple[Event, bytes]]:
        """Yield (event, raw bytes) for every readable record of a source."""
        pass

    @abstractmethod
    def get_raw(self, source_name: str, uid: str) -> bytes:
        """Get the bytes last written for a UID."""
        pass

    @abstractmethod
    def remove_source(self, source_name: str) -> None:
        """Delete everything stored for a source."""
        pass

    def list_uids(self, source_name: str) -> set[str]:
        """Get all UIDs stored for a source."""
        return {event.uid for event in self.list_all(source_name)}


class IcsFileEventStorage(EventStorageBackend):
    """
    Directory-per-source storage of .ics records.

    Nothing is cached: every call goes to disk.
    """

    def __init__(self, events_dir: Path, document: Optional[CalendarDocument] = None):
        self.events_dir = Path(events_dir)
        self.document = document or CalendarDocument()

    def source_dir(self, source_name: str) -> Path:
        if not is_valid_source_name(source_name):
            raise StorageError(f"calendar name {source_name!r} is not a valid directory name")
        return self.events_dir / source_name

    def record_path(self, source_name: str, uid: str) -> Path:
        return self.source_dir(source_name) / (sanitize_filename(uid) + RECORD_SUFFIX)

    def _record_files(self, source_name: str) -> list[Path]:
        directory = self.source_dir(source_name)
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            raise StorageError(f"cannot read event directory {directory}: {e}") from e
        return [p for p in entries if p.suffix == RECORD_SUFFIX and p.is_file()]

    def _clear(self, source_name: str) -> None:
        directory = self.source_dir(source_name)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create event directory {directory}: {e}") from e

        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise StorageError(f"cannot read event directory {directory}: {e}") from e

        for path in entries:
            if not path.is_file():
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Could not remove stale record %s: %s", path, e)

    def _write_record(self, record: StoredEvent) -> None:
        path = self.record_path(record.source_name, record.uid)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, 'wb') as f:
            f.write(record.raw_ical)
        os.replace(tmp_path, path)

    def replace_all(self, source_name: str, records: Iterable[StoredEvent]) -> int:
        """
        Efficient bulk save - replaces all records for a source.

        Existing records are cleared first. A record that fails to write is
        logged and skipped; the rest are still written.

        Returns:
            Number of records written.
        """
        self._clear(source_name)

        written = 0
        for record in records:
            try:
                self._write_record(record)
            except (OSError, ValueError) as e:
                logger.warning("Could not write event %r of %s: %s", record.uid, source_name, e)
                continue
            written += 1

        logger.debug("Saved %d events for %s", written, source_name)
        return written

    def iter_records(self, source_name: str) -> Iterator[tuple[Event, bytes]]:
        for path in self._record_files(source_name):
            try:
                raw = path.read_bytes()
                event = self.document.read_event(raw, source_name)
            except (OSError, ParseError) as e:
                logger.debug("Skipping unreadable record %s: %s", path, e)
                continue
            yield event, raw

    def list_all(self, source_name: str) -> list[Event]:
        """
        Load all events for a source.

        Corrupt records are skipped.

        Raises:
            StorageError: the source directory is missing or unreadable
        """
        return [event for event, _ in self.iter_records(source_name)]

    def get_raw(self, source_name: str, uid: str) -> bytes:
        """
        Get the exact bytes stored for a UID, for verbatim re-export.

        Raises:
            NotFoundError: no record exists for this UID
        """
        path = self.record_path(source_name, uid)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(f"event {uid!r} not found in calendar {source_name!r}") from None
        except OSError as e:
            raise StorageError(f"cannot read {path}: {e}") from e

    def remove_source(self, source_name: str) -> None:
        directory = self.source_dir(source_name)
        if not directory.exists():
            return
        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise StorageError(f"cannot remove event directory {directory}: {e}") from e


def create_storage_backend(events_dir: Path) -> EventStorageBackend:
    """Factory function to create a storage backend."""
    return IcsFileEventStorage(events_dir)
