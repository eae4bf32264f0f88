"""
Tests for IcsFileEventStorage: layout, full replacement, tolerant listing.
"""

from datetime import datetime
from pathlib import Path

import pytest
import pytz

from icsmirror.event_storage import IcsFileEventStorage, StoredEvent, sanitize_filename
from icsmirror.models import NotFoundError, StorageError
from tests.conftest import make_feed, make_record


class TestSanitizeFilename:
    def test_at_sign(self):
        assert sanitize_filename("1234@example.com") == "1234_at_example.com"

    def test_path_hostile_characters(self):
        assert sanitize_filename('a/b\\c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"

    def test_plain_uid_unchanged(self):
        assert sanitize_filename("event-42") == "event-42"


class TestReplaceAll:
    def test_writes_one_file_per_event(self, storage, config):
        records = [make_record("work", "a@example.com"), make_record("work", "b@example.com")]
        assert storage.replace_all("work", records) == 2

        names = sorted(p.name for p in config.calendar_dir("work").iterdir())
        assert names == ["a_at_example.com.ics", "b_at_example.com.ics"]

    def test_clears_previous_records(self, storage):
        storage.replace_all("work", [make_record("work", "old")])
        storage.replace_all("work", [make_record("work", "new")])
        assert storage.list_uids("work") == {"new"}

    def test_empty_replacement_clears_everything(self, storage):
        storage.replace_all("work", [make_record("work", "old")])
        assert storage.replace_all("work", []) == 0
        assert storage.list_all("work") == []

    def test_failed_write_does_not_abort_the_rest(self, storage, monkeypatch):
        original = storage._write_record

        def flaky_write(record):
            if record.uid == "broken":
                raise OSError("disk full")
            original(record)

        monkeypatch.setattr(storage, "_write_record", flaky_write)
        records = [make_record("work", uid) for uid in ("a", "broken", "c")]

        assert storage.replace_all("work", records) == 2
        assert storage.list_uids("work") == {"a", "c"}

    def test_unwritable_uid_does_not_abort_the_rest(self, storage):
        bad = StoredEvent(uid="bad\x00uid", source_name="work", raw_ical=b"BEGIN:VCALENDAR")
        records = [bad, make_record("work", "good")]

        assert storage.replace_all("work", records) == 1
        assert storage.list_uids("work") == {"good"}

    def test_unlistable_directory_raises_storage_error(self, storage, config, monkeypatch):
        storage.replace_all("work", [make_record("work", "a")])

        def denied(self):
            raise PermissionError("permission denied")

        monkeypatch.setattr(Path, "iterdir", denied)
        with pytest.raises(StorageError):
            storage.replace_all("work", [make_record("work", "b")])

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b"])
    def test_rejects_names_outside_events_dir(self, storage, config, name):
        config.sources_file.write_text("[]\n")
        with pytest.raises(StorageError):
            storage.replace_all(name, [])
        assert config.sources_file.exists()

    def test_sources_are_isolated(self, storage):
        storage.replace_all("work", [make_record("work", "shared", summary="Work copy")])
        storage.replace_all("home", [make_record("home", "shared", summary="Home copy")])

        assert [e.summary for e in storage.list_all("work")] == ["Work copy"]
        assert [e.summary for e in storage.list_all("home")] == ["Home copy"]


class TestListAll:
    def test_round_trip(self, storage):
        record = make_record(
            "work",
            "rt@example.com",
            summary="Design review",
            dtstart="DTSTART;TZID=Europe/Berlin:20240315T090000",
            dtend="DTEND;TZID=Europe/Berlin:20240315T100000",
            extra=("DESCRIPTION:Bring slides", "LOCATION:Room 1"),
        )
        storage.replace_all("work", [record])

        [event] = storage.list_all("work")
        assert event.uid == "rt@example.com"
        assert event.summary == "Design review"
        assert event.description == "Bring slides"
        assert event.location == "Room 1"
        assert event.start == pytz.UTC.localize(datetime(2024, 3, 15, 8, 0))
        assert event.all_day is False
        assert event.calendar == "work"

    def test_all_day_round_trip(self, storage):
        record = make_record(
            "home", "day", dtstart="DTSTART;VALUE=DATE:20240315", dtend=None
        )
        storage.replace_all("home", [record])

        [event] = storage.list_all("home")
        assert event.all_day is True
        assert event.start == pytz.UTC.localize(datetime(2024, 3, 15))

    def test_corrupt_records_are_skipped(self, storage, config):
        storage.replace_all("work", [make_record("work", "good")])
        directory = config.calendar_dir("work")
        (directory / "garbage.ics").write_text("this is not a calendar")
        (directory / "empty.ics").write_text(make_feed())

        assert [e.uid for e in storage.list_all("work")] == ["good"]

    def test_ignores_non_ics_files(self, storage, config):
        storage.replace_all("work", [make_record("work", "good")])
        (config.calendar_dir("work") / "notes.txt").write_text("hello")
        assert storage.list_uids("work") == {"good"}

    def test_missing_directory_raises(self, storage):
        with pytest.raises(StorageError):
            storage.list_all("never-synced")


class TestGetRaw:
    def test_returns_exact_bytes(self, storage):
        record = make_record("work", "raw@example.com")
        storage.replace_all("work", [record])
        assert storage.get_raw("work", "raw@example.com") == record.raw_ical

    def test_missing_uid(self, storage):
        storage.replace_all("work", [])
        with pytest.raises(NotFoundError):
            storage.get_raw("work", "nope")


class TestRemoveSource:
    def test_deletes_directory(self, storage, config):
        storage.replace_all("work", [make_record("work", "a")])
        storage.remove_source("work")
        assert not config.calendar_dir("work").exists()

    def test_missing_directory_is_fine(self, storage):
        storage.remove_source("never-synced")


def test_storage_is_not_cached(config):
    writer = IcsFileEventStorage(config.events_dir)
    reader = IcsFileEventStorage(config.events_dir)
    written = writer.replace_all("work", [make_record("work", "a")])
    assert written == 1
    assert reader.list_uids("work") == {"a"}

    writer.replace_all("work", [make_record("work", "b")])
    assert reader.list_uids("work") == {"b"}
