"""
Configuration for icsmirror.

Resolves the configuration directory and parses the optional
``settings.toml`` found inside it.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import __version__
from .models import StorageError


CONFIG_DIR_ENV = "ICSMIRROR_DIR"
SOURCES_FILENAME = "sources.json"
SETTINGS_FILENAME = "settings.toml"
EVENTS_DIRNAME = "events"
DEFAULT_USER_AGENT = f"icsmirror/{__version__}"


@dataclass
class Config:
    """Main configuration container for icsmirror."""

    config_dir: Path
    timezone: Optional[str] = None  # IANA name; None uses the system zone
    fetch_timeout: Optional[float] = None  # None leaves it to the transport
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def get_default_config_dir(cls) -> Path:
        """
        Get the configuration directory.

        ``$ICSMIRROR_DIR`` wins; otherwise ``$XDG_CONFIG_HOME/icsmirror``.
        """
        override = os.environ.get(CONFIG_DIR_ENV)
        if override:
            return Path(os.path.expanduser(override))
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'icsmirror'

    @property
    def sources_file(self) -> Path:
        return self.config_dir / SOURCES_FILENAME

    @property
    def settings_file(self) -> Path:
        return self.config_dir / SETTINGS_FILENAME

    @property
    def events_dir(self) -> Path:
        return self.config_dir / EVENTS_DIRNAME

    def calendar_dir(self, name: str) -> Path:
        """Directory holding the stored records of one source."""
        return self.events_dir / name

    def ensure_dir(self) -> None:
        """Create the configuration directory if it doesn't exist."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create config directory {self.config_dir}: {e}") from e

    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> 'Config':
        """
        Load configuration for the given directory.

        A missing settings.toml means defaults.

        Raises:
            StorageError: settings.toml exists but cannot be read or parsed
        """
        if config_dir is None:
            config_dir = cls.get_default_config_dir()
        config_dir = Path(config_dir)

        settings_path = config_dir / SETTINGS_FILENAME
        if not settings_path.exists():
            return cls(config_dir=config_dir)

        try:
            with open(settings_path, 'rb') as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise StorageError(f"cannot read {settings_path}: {e}") from e

        general = data.get('General', {})
        sync = data.get('Sync', {})

        timeout = sync.get('timeout')
        return cls(
            config_dir=config_dir,
            timezone=general.get('timezone') or None,
            fetch_timeout=float(timeout) if timeout is not None else None,
            user_agent=sync.get('user_agent', DEFAULT_USER_AGENT),
        )
