"""Tests for ICS rendering, naming and writing."""

from dataclasses import replace
from datetime import datetime

import pytest

from ticketcal.errors import WriteError
from ticketcal.ics_generator import ics_filename, parse_ics, render_ics, write_ics


class TestRenderIcs:

    def test_required_properties(self, sample_event):
        text = render_ics(sample_event)
        lines = text.split("\r\n")
        assert lines[0] == "BEGIN:VCALENDAR"
        assert "BEGIN:VEVENT" in lines
        assert "UID:event_1746095400" in lines
        assert "DTSTAMP:20250501T103000Z" in lines
        assert "DTSTART:20250615T200000" in lines
        assert "DTEND:20250615T220000" in lines
        assert text.endswith("END:VCALENDAR\r\n")

    def test_text_is_escaped(self, sample_event):
        text = render_ics(sample_event)
        assert "SUMMARY:Jazz Night\\; Late\\, Set" in text
        assert "LOCATION:Blue Note\\nNew York" in text

    def test_long_lines_are_folded(self, sample_event):
        event = replace(sample_event, summary="Très long concert " * 10)
        for line in render_ics(event).split("\r\n"):
            assert len(line.encode("utf-8")) <= 75

    def test_round_trip(self, sample_event):
        parsed = parse_ics(render_ics(sample_event))
        assert parsed.summary == sample_event.summary
        assert parsed.location == sample_event.location
        assert parsed.start == sample_event.start
        assert parsed.end == sample_event.end
        assert parsed.id == sample_event.id

    def test_round_trip_folded_unicode(self, sample_event):
        event = replace(sample_event, summary="Festival für Kammermusik, Abend " * 5, location="")
        parsed = parse_ics(render_ics(event))
        assert parsed.summary == event.summary
        assert parsed.location == ""

    def test_parse_rejects_text_without_event(self):
        with pytest.raises(ValueError):
            parse_ics("BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")


class TestIcsFilename:

    def test_spaces_become_underscores(self):
        assert ics_filename("Jazz Night") == "Jazz_Night.ics"

    def test_whitespace_runs_collapse(self):
        assert ics_filename("  Jazz \t Night ") == "Jazz_Night.ics"

    def test_empty_summary(self):
        assert ics_filename("") == ".ics"

    def test_path_separators_are_replaced(self):
        assert ics_filename("AC/DC Live") == "AC_DC_Live.ics"


class TestWriteIcs:

    def test_writes_file_named_after_summary(self, sample_event, tmp_path):
        event = replace(sample_event, summary="Jazz Night")
        path = write_ics(event, tmp_path)
        assert path == tmp_path / "Jazz_Night.ics"
        assert parse_ics(path.read_text(encoding="utf-8")).summary == "Jazz Night"

    def test_crlf_preserved_on_disk(self, sample_event, tmp_path):
        path = write_ics(sample_event, tmp_path)
        assert b"\r\nEND:VEVENT\r\n" in path.read_bytes()

    def test_overwrites_existing_file(self, sample_event, tmp_path):
        event = replace(sample_event, summary="Expo")
        (tmp_path / "Expo.ics").write_text("old", encoding="utf-8")
        write_ics(replace(event, start=datetime(2025, 7, 1, 9, 0), end=datetime(2025, 7, 1, 11, 0)), tmp_path)
        assert "DTSTART:20250701T090000" in (tmp_path / "Expo.ics").read_text(encoding="utf-8")

    def test_missing_directory_raises_write_error(self, sample_event, tmp_path):
        with pytest.raises(WriteError) as excinfo:
            write_ics(sample_event, tmp_path / "missing")
        assert excinfo.value.stage == "write"
