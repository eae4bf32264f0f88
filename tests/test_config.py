"""
Tests for configuration directory resolution and settings.toml loading.
"""

from pathlib import Path

import pytest

from icsmirror.calendar_manager import CalendarManager
from icsmirror.config import DEFAULT_USER_AGENT, Config
from icsmirror.models import StorageError
from icsmirror.timezone_utils import get_local_timezone


class TestConfigDir:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ICSMIRROR_DIR", str(tmp_path / "custom"))
        assert Config.get_default_config_dir() == tmp_path / "custom"

    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("ICSMIRROR_DIR", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert Config.get_default_config_dir() == tmp_path / "icsmirror"

    def test_home_fallback(self, monkeypatch):
        monkeypatch.delenv("ICSMIRROR_DIR", raising=False)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert Config.get_default_config_dir() == Path.home() / ".config" / "icsmirror"

    def test_layout(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.sources_file == tmp_path / "sources.json"
        assert config.calendar_dir("work") == tmp_path / "events" / "work"


class TestLoad:
    def test_defaults_without_settings(self, tmp_path):
        config = Config.load(tmp_path)
        assert config.config_dir == tmp_path
        assert config.timezone is None
        assert config.fetch_timeout is None
        assert config.user_agent == DEFAULT_USER_AGENT

    def test_settings_file(self, tmp_path):
        (tmp_path / "settings.toml").write_text(
            '[General]\n'
            'timezone = "Europe/Berlin"\n'
            '\n'
            '[Sync]\n'
            'timeout = 15\n'
            'user_agent = "my-mirror/2.0"\n'
        )
        config = Config.load(tmp_path)
        assert config.timezone == "Europe/Berlin"
        assert config.fetch_timeout == 15.0
        assert config.user_agent == "my-mirror/2.0"

    def test_malformed_settings(self, tmp_path):
        (tmp_path / "settings.toml").write_text("[General\ntimezone =")
        with pytest.raises(StorageError):
            Config.load(tmp_path)

    def test_uses_env_when_no_dir_given(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ICSMIRROR_DIR", str(tmp_path))
        assert Config.load().config_dir == tmp_path


class TestOpen:
    def test_creates_directory(self, tmp_path):
        manager = CalendarManager.open(tmp_path / "fresh")
        assert manager.config.config_dir.is_dir()
        assert manager.list_sources() == []

    def test_applies_configured_timezone(self, tmp_path):
        (tmp_path / "settings.toml").write_text('[General]\ntimezone = "Asia/Tokyo"\n')
        CalendarManager.open(tmp_path)
        assert get_local_timezone().zone == "Asia/Tokyo"
