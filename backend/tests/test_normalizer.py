from datetime import datetime, timezone

import pytest

from app.services.normalizer import NormalizerService, parse_vendor_datetime, seconds_to_hours
from conftest import tempo_record, toggl_record


@pytest.fixture
def normalizer():
    return NormalizerService()


def test_seconds_to_hours():
    assert seconds_to_hours(3600) == 1.0
    assert seconds_to_hours("5400") == 1.5
    assert seconds_to_hours(-1736500000) is None
    assert seconds_to_hours(None) is None
    assert seconds_to_hours("abc") is None


def test_parse_vendor_datetime_treats_naive_as_utc():
    assert parse_vendor_datetime("2026-01-10T09:00:00") == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
    assert parse_vendor_datetime("2026-01-10T09:00:00Z") == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
    assert parse_vendor_datetime("") is None
    assert parse_vendor_datetime("yesterday") is None


class TestToggl:
    def test_maps_record(self, normalizer):
        entry = normalizer.normalize_toggl_entry(toggl_record(project_name="Website"))
        assert entry.source == "TOGGL"
        assert entry.external_id == "555"
        assert entry.duration_hours == 1.0
        assert entry.date == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
        assert entry.project == "Website"
        assert entry.description == "standup"
        assert not entry.used_fallback

    def test_running_timer_is_skipped(self, normalizer):
        assert normalizer.normalize_toggl_entry(toggl_record(duration=-1768035600)) is None

    def test_missing_duration_is_skipped(self, normalizer):
        record = toggl_record()
        del record["duration"]
        assert normalizer.normalize_toggl_entry(record) is None

    def test_project_id_fallback_is_flagged(self, normalizer):
        entry = normalizer.normalize_toggl_entry(toggl_record(project_id=42))
        assert entry.project == "Proj-42"
        assert entry.used_fallback

    def test_no_project(self, normalizer):
        entry = normalizer.normalize_toggl_entry(toggl_record())
        assert entry.project == "No Project"
        assert not entry.used_fallback

    def test_null_description_becomes_empty(self, normalizer):
        entry = normalizer.normalize_toggl_entry(toggl_record(description=None))
        assert entry.description == ""


class TestTempo:
    def test_maps_worklog(self, normalizer):
        entry = normalizer.normalize_tempo_entry(tempo_record())
        assert entry.source == "TEMPO"
        assert entry.external_id == "9001"
        assert entry.duration_hours == 1.5
        assert entry.date == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
        assert entry.project == "ABC-27 - Alpha"
        assert entry.description == "Working on issue ABC-27"
        assert not entry.used_fallback

    def test_issue_without_key_uses_id(self, normalizer):
        entry = normalizer.normalize_tempo_entry(tempo_record(issue={"id": 10001}))
        assert entry.project == "Issue #10001"
        assert entry.used_fallback

    def test_fallback_is_deterministic(self, normalizer):
        record = tempo_record(issue={"id": 10001})
        first = normalizer.normalize_tempo_entry(record)
        second = normalizer.normalize_tempo_entry(record)
        assert first == second

    def test_description_falls_back_to_comment(self, normalizer):
        record = tempo_record(description=None, comment="pairing")
        assert normalizer.normalize_tempo_entry(record).description == "pairing"
        record = tempo_record(description=None)
        assert normalizer.normalize_tempo_entry(record).description == ""

    def test_date_without_start_time_is_midnight_utc(self, normalizer):
        record = tempo_record()
        del record["startTime"]
        entry = normalizer.normalize_tempo_entry(record)
        assert entry.date == datetime(2026, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_missing_id_is_skipped(self, normalizer):
        record = tempo_record()
        del record["tempoWorklogId"]
        assert normalizer.normalize_tempo_entry(record) is None


class TestTempoMalformed:
    def test_issue_as_string_falls_back(self, normalizer):
        entry = normalizer.normalize_tempo_entry(tempo_record(issue="ABC-27"))
        assert entry.project == "Unknown Issue"
        assert entry.used_fallback

    def test_issue_project_as_string_is_ignored(self, normalizer):
        entry = normalizer.normalize_tempo_entry(tempo_record(issue={"id": 1, "key": "ABC-27", "project": "Alpha"}))
        assert entry.project == "ABC-27"

    def test_non_string_start_time_means_midnight(self, normalizer):
        entry = normalizer.normalize_tempo_entry(tempo_record(startTime=900))
        assert entry.date == datetime(2026, 1, 10, 0, 0, tzinfo=timezone.utc)
