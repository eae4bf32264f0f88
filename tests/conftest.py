"""
Shared pytest fixtures and iCal helpers.
"""

import pytest

from icsmirror.calendar_document import decode_events, encode_event
from icsmirror.calendar_manager import CalendarManager
from icsmirror.config import Config
from icsmirror.event_storage import IcsFileEventStorage, StoredEvent
from icsmirror.query_engine import QueryEngine
from icsmirror.source_registry import SourceRegistry
from icsmirror.sync_engine import SyncEngine
from icsmirror.timezone_utils import set_timezone

LOCAL_TZ = "America/New_York"
FEED_URL = "https://calendar.example.com/work.ics"
HOME_URL = "https://calendar.example.com/home.ics"


def make_vevent(
    uid: str | None,
    summary: str = "Test Event",
    dtstart: str = "DTSTART:20260301T100000Z",
    dtend: str | None = "DTEND:20260301T110000Z",
    extra: tuple = (),
) -> str:
    """Return a VEVENT iCal string (no VCALENDAR wrapper).

    ``dtstart``/``dtend`` are complete content lines so tests can vary
    parameters, e.g. ``DTSTART;VALUE=DATE:20240315``.
    """
    lines = ["BEGIN:VEVENT"]
    if uid is not None:
        lines.append(f"UID:{uid}")
    lines.append(f"SUMMARY:{summary}")
    if dtstart:
        lines.append(dtstart)
    if dtend:
        lines.append(dtend)
    lines.append("DTSTAMP:20260224T000000Z")
    lines.extend(extra)
    lines.append("END:VEVENT")
    return "\r\n".join(lines) + "\r\n"


def make_feed(*vevents: str) -> str:
    """Wrap VEVENT strings in a minimal VCALENDAR."""
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//TestSuite//EN\r\n" + "".join(vevents) + "END:VCALENDAR\r\n"
    )


def make_record(source_name: str, uid: str, **kwargs) -> StoredEvent:
    """Build a StoredEvent the way the sync engine does."""
    component = decode_events(make_feed(make_vevent(uid, **kwargs)))[0]
    return StoredEvent(uid=uid, source_name=source_name, raw_ical=encode_event(component))


@pytest.fixture(autouse=True)
def local_timezone():
    """Pin "local time" so results don't depend on the host."""
    set_timezone(LOCAL_TZ)
    yield LOCAL_TZ
    set_timezone(None)


@pytest.fixture
def config(tmp_path):
    cfg = Config(config_dir=tmp_path / "icsmirror")
    cfg.ensure_dir()
    return cfg


@pytest.fixture
def storage(config):
    return IcsFileEventStorage(config.events_dir)


@pytest.fixture
def registry(config, storage):
    return SourceRegistry(config.sources_file, storage)


@pytest.fixture
def sync_engine(storage, config):
    return SyncEngine(storage, config)


@pytest.fixture
def query_engine(registry, storage):
    return QueryEngine(registry, storage)


@pytest.fixture
def manager(config):
    return CalendarManager(config)
