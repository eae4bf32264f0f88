"""
Registry of configured calendar sources, persisted as sources.json.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .event_storage import EventStorageBackend
from .models import (
    DuplicateNameError,
    InvalidNameError,
    NotFoundError,
    Source,
    StorageError,
    is_valid_source_name,
)


logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Owns the ordered list of sources.

    Every operation re-reads the registry file; nothing is kept in memory.
    """

    def __init__(self, sources_file: Path, storage: Optional[EventStorageBackend] = None):
        """
        Args:
            sources_file: Path of the JSON registry file
            storage: Event storage whose records are dropped on remove()
        """
        self.sources_file = Path(sources_file)
        self.storage = storage

    def load(self) -> list[Source]:
        """
        Read the configured sources.

        Returns:
            Sources in insertion order; empty if the file does not exist yet.

        Raises:
            StorageError: the file exists but cannot be read or parsed
        """
        try:
            with open(self.sources_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise StorageError(f"cannot read {self.sources_file}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"{self.sources_file}: expected a JSON array")
        try:
            return [Source.from_dict(item) for item in data]
        except (KeyError, TypeError) as e:
            raise StorageError(f"{self.sources_file}: malformed source entry: {e}") from e

    def save(self, sources: list[Source]) -> None:
        """Write the full source list, overwriting the previous content."""
        try:
            self.sources_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.sources_file, 'w', encoding='utf-8') as f:
                json.dump([s.to_dict() for s in sources], f, indent=2, ensure_ascii=False)
                f.write("\n")
        except OSError as e:
            raise StorageError(f"cannot write {self.sources_file}: {e}") from e

    def get(self, name: str) -> Source:
        for source in self.load():
            if source.name == name:
                return source
        raise NotFoundError(f"calendar {name!r} not found")

    def add(self, name: str, url: str) -> Source:
        """
        Append a new source.

        Raises:
            InvalidNameError: the name is empty, "." or "..", or contains a path separator
            DuplicateNameError: a source with this exact name exists
        """
        if not is_valid_source_name(name):
            raise InvalidNameError(f"invalid calendar name {name!r}")

        sources = self.load()
        if any(s.name == name for s in sources):
            raise DuplicateNameError(f"calendar {name!r} already exists")

        source = Source(name=name, url=url)
        sources.append(source)
        self.save(sources)
        logger.info("Added calendar %s", name)
        return source

    def remove(self, name: str) -> None:
        """
        Remove a source and its stored events.

        Failing to delete the events does not keep the source registered.

        Raises:
            NotFoundError: no source has this name
        """
        sources = self.load()
        remaining = [s for s in sources if s.name != name]
        if len(remaining) == len(sources):
            raise NotFoundError(f"calendar {name!r} not found")

        if self.storage is not None:
            try:
                self.storage.remove_source(name)
            except StorageError as e:
                logger.warning("Could not delete events of %s: %s", name, e)

        self.save(remaining)
        logger.info("Removed calendar %s", name)
