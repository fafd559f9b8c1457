"""
Export calendar events to CSV (Google Calendar import), ICS, and JSON.
"""
from __future__ import annotations

import csv
import hashlib
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Sequence

import icalendar
import pytz

from .model import CalendarEvent
from .text import sanitize_csv_field

# Montreal timezone for calendar
TZ_MONTREAL = "America/Montreal"

CSV_HEADERS = [
    "Subject",
    "Start Date",
    "Start Time",
    "End Date",
    "End Time",
    "All Day Event",
    "Description",
    "Location",
    "Private",
]

FILENAME_PREFIX = "concordia-schedule"


def default_filename(year: int, fmt: str = "csv") -> str:
    """e.g. concordia-schedule-2025.csv"""
    return f"{FILENAME_PREFIX}-{year}.{fmt.lower()}"


def _require_date(event: CalendarEvent):
    if event.date is None:
        raise ValueError(
            f"Event '{event.subject}' has no date; expand it over a semester first."
        )
    return event.date


def _csv_row(event: CalendarEvent) -> List[str]:
    day = _require_date(event).strftime("%m/%d/%Y")
    return [
        sanitize_csv_field(event.subject),
        day,
        event.start_time,
        day,
        event.end_time,
        "False",
        sanitize_csv_field(event.description),
        sanitize_csv_field(event.location),
        "False",
    ]


def encode_csv(events: Iterable[CalendarEvent]) -> str:
    """
    Calendar-import CSV: a header line, then one row per dated event with
    every value quoted and inner quotes doubled.
    """
    buf = io.StringIO()
    buf.write(",".join(CSV_HEADERS))
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    rows = [_csv_row(e) for e in events]
    if rows:
        buf.write("\n")
        writer.writerows(rows)
        # no trailing newline after the last row
        return buf.getvalue().rstrip("\n")
    return buf.getvalue()


def _parse_time(event: CalendarEvent, time_str: str) -> datetime:
    """Combine the event date with an 'HH:MM' time."""
    dt_str = f"{_require_date(event).isoformat()} {time_str.strip()}"
    return datetime.strptime(dt_str, "%Y-%m-%d %H:%M")


def export_csv(events: Sequence[CalendarEvent], out_path: str | Path) -> None:
    """Export dated events to calendar-import CSV."""
    Path(out_path).write_text(encode_csv(events), encoding="utf-8")


def export_ics(events: Sequence[CalendarEvent], out_path: str | Path) -> None:
    """Export dated events to iCalendar (.ics) for Apple/Google calendar."""
    cal = icalendar.Calendar()
    cal.add("prodid", "-//Concordia Schedule Export//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("x-wr-calname", "Concordia Schedule")
    cal.add("x-wr-timezone", TZ_MONTREAL)

    tz = pytz.timezone(TZ_MONTREAL)
    for ev in events:
        start = _parse_time(ev, ev.start_time)
        end = _parse_time(ev, ev.end_time)

        event = icalendar.Event()

        # Deterministic UID so re-imports update instead of duplicating
        uid_string = f"{ev.subject}-{ev.section}-{start.isoformat()}"
        uid_hash = hashlib.md5(uid_string.encode("utf-8")).hexdigest()
        event.add("uid", f"{uid_hash}@concordia-schedule-export")

        event.add("summary", ev.subject)
        event.add("description", ev.description)
        event.add("location", ev.location)
        event.add("dtstart", tz.localize(start))
        event.add("dtend", tz.localize(end))
        event.add("dtstamp", datetime.now(timezone.utc))

        cal.add_component(event)

    Path(out_path).write_text(cal.to_ical().decode("utf-8"), encoding="utf-8")


def export_json(events: Sequence[CalendarEvent], out_path: str | Path) -> None:
    """Export events (templates or dated) to JSON."""
    Path(out_path).write_text(
        json.dumps([e.to_dict() for e in events], indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def export(events: Sequence[CalendarEvent], out_path: str | Path, fmt: str) -> None:
    """Export to the given format: csv, ics, or json."""
    fmt = fmt.lower()
    if fmt == "csv":
        export_csv(events, out_path)
    elif fmt == "ics":
        export_ics(events, out_path)
    elif fmt == "json":
        export_json(events, out_path)
    else:
        raise ValueError(f"Unsupported format: {fmt}. Use csv, ics, or json.")
