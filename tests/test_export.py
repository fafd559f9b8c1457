import csv
import io
import json
from datetime import date

import pytest

from concordia_schedule_export.export import (
    CSV_HEADERS,
    default_filename,
    encode_csv,
    export,
    export_ics,
)
from concordia_schedule_export.model import CalendarEvent


def _event(**overrides):
    fields = dict(
        subject="COMP 248 - Object-Oriented Programming I",
        description="COMP 248 | Lecture | 3 Credits | Instructor: Ada Lovelace",
        location="H 937",
        day=0,
        start_time="11:45",
        end_time="13:00",
        section="AA",
        date=date(2025, 9, 1),
    )
    fields.update(overrides)
    return CalendarEvent(**fields)


def test_encode_csv_layout():
    text = encode_csv([_event(), _event(day=2, date=date(2025, 9, 3))])
    lines = text.split("\n")
    assert lines[0] == "Subject,Start Date,Start Time,End Date,End Time,All Day Event,Description,Location,Private"
    assert lines[1] == (
        '"COMP 248 - Object-Oriented Programming I","09/01/2025","11:45","09/01/2025","13:00",'
        '"False","COMP 248 | Lecture | 3 Credits | Instructor: Ada Lovelace","H 937","False"'
    )
    assert len(lines) == 3
    assert not text.endswith("\n")


def test_quotes_are_doubled_and_round_trip():
    text = encode_csv([_event(subject='He said "hi"')])
    assert '"He said ""hi"""' in text
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == CSV_HEADERS
    assert rows[1][0] == 'He said "hi"'


def test_fields_are_cleaned_once():
    ev = _event(subject="  COMP 248\n -\tOOP  ", location="H\r\n937", description="a,  b")
    rows = list(csv.reader(io.StringIO(encode_csv([ev]))))
    assert rows[1][0] == "COMP 248 - OOP"
    assert rows[1][6] == "a, b"
    assert rows[1][7] == "H 937"


def test_undated_event_rejected():
    with pytest.raises(ValueError):
        encode_csv([_event(date=None)])


def test_default_filename():
    assert default_filename(2025) == "concordia-schedule-2025.csv"
    assert default_filename(2026, "ICS") == "concordia-schedule-2026.ics"


def test_export_ics(tmp_path):
    out_path = tmp_path / "test.ics"
    events = [_event(date=date(2026, 1, 5), start_time="10:30", end_time="12:15")]

    export_ics(events, out_path)

    content = out_path.read_text(encoding="utf-8")
    assert "BEGIN:VCALENDAR" in content
    assert "BEGIN:VEVENT" in content
    assert "END:VEVENT" in content
    assert "DTSTART;TZID=America/Montreal:20260105T103000" in content
    assert "DTEND;TZID=America/Montreal:20260105T121500" in content
    assert "@concordia-schedule-export" in content
    # one event per occurrence, no recurrence rule
    assert "RRULE" not in content


def test_export_ics_uid_is_stable(tmp_path):
    a, b = tmp_path / "a.ics", tmp_path / "b.ics"
    export_ics([_event()], a)
    export_ics([_event()], b)
    uid = [l for l in a.read_text(encoding="utf-8").splitlines() if l.startswith("UID:")]
    assert uid and uid == [l for l in b.read_text(encoding="utf-8").splitlines() if l.startswith("UID:")]


def test_export_json(tmp_path):
    out_path = tmp_path / "events.json"
    export([_event(date=None)], out_path, "json")
    data = json.loads(out_path.read_text(encoding="utf-8"))
    assert data[0]["startTime"] == "11:45"
    assert data[0]["day"] == 0
    assert "date" not in data[0]
    assert CalendarEvent.from_dict(data[0]) == _event(date=None)


def test_export_csv_file(tmp_path):
    out_path = tmp_path / "out.csv"
    export([_event()], out_path, "CSV")
    assert out_path.read_text(encoding="utf-8").startswith("Subject,")


def test_export_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        export([_event()], tmp_path / "x", "xlsx")
