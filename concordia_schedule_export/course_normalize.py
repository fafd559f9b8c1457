"""
Normalize raw course data from the open-data API into Course objects.

Two raw shapes exist:

- catalog: one dict per course with nested sections[].schedule[], e.g.
    {"courseCode": "COMP 248", "title": "...", "sections": [
        {"section": "AA", "type": "LEC", "schedule": [
            {"days": "MoWe", "startTime": "11:45", "endTime": "13:00"}]}]}

- schedule feed: a flat list of rows, one per meeting fragment, each row
  carrying its own section + componentCode and seven Y/N day flags, e.g.
    {"section": "AA", "componentCode": "LEC", "modays": "Y", ...,
     "classStartTime": "11.45.00", "classEndTime": "13.00.00"}

The shape is detected once (classify_record) and each shape has its own
builder. Bad field contents never raise: unusable meetings are dropped,
sections without an id or without meetings are dropped, and a record
without a course code produces None.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .model import Course, Meeting, Section
from .text import sanitize_text
from .time_day import (
    days_from_flags,
    has_day_flags,
    normalize_class_type,
    parse_days,
    parse_time,
)

SHAPE_CATALOG = "catalog"
SHAPE_SCHEDULE_FEED = "schedule_feed"

_COURSE_CODE = re.compile(r"^([A-Z]{2,6})\s*(\d{3,4}[A-Z-]*)$")


@dataclass(frozen=True)
class RawRecord:
    """Raw API payload tagged with its detected shape."""

    shape: str
    payload: Any


# ──────────────────────────────────────────────────────────────────
#  Field helpers
# ──────────────────────────────────────────────────────────────────

def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key that is present and non-empty."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _to_int(value: Any) -> int:
    try:
        number = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


def _to_float(value: Any) -> float:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def normalize_course_code(raw: Any) -> str:
    """'comp248' / 'COMP  248' -> 'COMP 248'. Returns '' if unrecognized."""
    text = " ".join(sanitize_text(_as_text(raw)).upper().split())
    m = _COURSE_CODE.match(text)
    if not m:
        return ""
    return f"{m.group(1)} {m.group(2)}"


def _instructor_name(row: Mapping[str, Any]) -> str:
    instructors = row.get("instructors")
    if isinstance(instructors, list) and instructors:
        first = instructors[0]
        if isinstance(first, Mapping):
            parts = [_as_text(first.get("firstName")), _as_text(first.get("lastName"))]
            return sanitize_text(" ".join(p.strip() for p in parts if p.strip()))
        return sanitize_text(_as_text(first))
    if isinstance(instructors, str):
        return sanitize_text(instructors)
    return sanitize_text(_as_text(row.get("instructor")))


def _rows(data: Any) -> List[Mapping[str, Any]]:
    if isinstance(data, Mapping):
        return [data]
    if isinstance(data, (list, tuple)):
        return [r for r in data if isinstance(r, Mapping)]
    return []


# ──────────────────────────────────────────────────────────────────
#  Shape detection
# ──────────────────────────────────────────────────────────────────

def _is_feed_row(row: Mapping[str, Any]) -> bool:
    return "componentCode" in row or "classStartTime" in row or has_day_flags(row)


def classify_record(raw: Any) -> Optional[RawRecord]:
    """
    Detect which raw shape `raw` is.

    A dict of feed fields counts as a one-row feed; a list counts as a feed
    when any of its rows has feed fields. Anything else is not a course.
    """
    if isinstance(raw, Mapping):
        if _is_feed_row(raw) and "sections" not in raw:
            return RawRecord(SHAPE_SCHEDULE_FEED, [raw])
        return RawRecord(SHAPE_CATALOG, raw)
    rows = _rows(raw)
    if rows and any(_is_feed_row(r) for r in rows):
        return RawRecord(SHAPE_SCHEDULE_FEED, rows)
    return None


# ──────────────────────────────────────────────────────────────────
#  Section assembly
# ──────────────────────────────────────────────────────────────────

class _SectionBuilder:
    """Collects meetings for one (section label, component code) key."""

    def __init__(self, section: str, type_: str, instructor: str, location: str,
                 capacity: int, enrolled: int, waitlist: int) -> None:
        self.fields = {
            "section": section,
            "type": type_,
            "instructor": instructor,
            "location": location,
            "capacity": capacity,
            "enrolled": enrolled,
            "waitlist": waitlist,
        }
        self.meetings: List[Meeting] = []

    def add(self, meeting: Meeting) -> None:
        # identical rows repeat per instructor in the feed
        if meeting not in self.meetings:
            self.meetings.append(meeting)

    def build(self) -> Section:
        return Section(schedule=tuple(self.meetings), **self.fields)


def _finish(builders: Iterable[_SectionBuilder]) -> Tuple[Section, ...]:
    return tuple(b.build() for b in builders if b.meetings)


def _sections_from_feed(rows: List[Mapping[str, Any]]) -> Tuple[Section, ...]:
    builders: Dict[Tuple[str, str], _SectionBuilder] = {}

    for row in rows:
        label = sanitize_text(_as_text(row.get("section")))
        if not label:
            continue
        component = _as_text(row.get("componentCode")).strip().upper()
        class_type = normalize_class_type(component)
        location = sanitize_text(_as_text(_first(row, "locationCode", "roomCode")))

        key = (label, component)
        builder = builders.get(key)
        if builder is None:
            builder = builders[key] = _SectionBuilder(
                section=label,
                type_=class_type,
                instructor=_instructor_name(row),
                location=location,
                capacity=_to_int(row.get("classCapacity")),
                enrolled=_to_int(row.get("enrollmentTotal")),
                waitlist=_to_int(row.get("waitlistTotal")),
            )

        days = days_from_flags(row)
        start = parse_time(row.get("classStartTime"))
        end = parse_time(row.get("classEndTime"))
        if days and start and end:
            builder.add(Meeting(tuple(days), start, end, location, class_type))

    return _finish(builders.values())


def _meetings_from_catalog(data: Any, default_type: str) -> List[Meeting]:
    meetings: List[Meeting] = []
    for m in _rows(data):
        days = parse_days(_first(m, "days", "day"))
        start = parse_time(_first(m, "startTime", "start"))
        end = parse_time(_first(m, "endTime", "end"))
        if not days or not start or not end:
            continue
        raw_type = m.get("type")
        meetings.append(Meeting(
            days=tuple(days),
            start_time=start,
            end_time=end,
            location=sanitize_text(_as_text(_first(m, "location", "room"))),
            type=normalize_class_type(raw_type) if raw_type else default_type,
        ))
    return meetings


def _sections_from_catalog(data: Any) -> Tuple[Section, ...]:
    builders: Dict[Tuple[str, str], _SectionBuilder] = {}

    for s in _rows(data):
        label = sanitize_text(_as_text(_first(s, "section", "sectionCode")))
        if not label:
            continue
        component = _as_text(_first(s, "type", "classType") or "LEC").strip().upper()
        class_type = normalize_class_type(component)

        key = (label, component)
        builder = builders.get(key)
        if builder is None:
            builder = builders[key] = _SectionBuilder(
                section=label,
                type_=class_type,
                instructor=sanitize_text(_as_text(s.get("instructor"))),
                location=sanitize_text(_as_text(_first(s, "location", "room"))),
                capacity=_to_int(s.get("capacity")),
                enrolled=_to_int(s.get("enrolled")),
                waitlist=_to_int(s.get("waitlist")),
            )
        for meeting in _meetings_from_catalog(_first(s, "schedule", "meetings"), class_type):
            builder.add(meeting)

    return _finish(builders.values())


# ──────────────────────────────────────────────────────────────────
#  Public API
# ──────────────────────────────────────────────────────────────────

def _course_from_catalog(raw: Mapping[str, Any], course_code: str = "") -> Optional[Course]:
    code = normalize_course_code(_first(raw, "courseCode", "code") or course_code)
    if not code:
        return None
    return Course(
        code=code,
        title=sanitize_text(_as_text(_first(raw, "title", "courseName"))),
        credits=_to_float(raw.get("credits")),
        sections=_sections_from_catalog(raw.get("sections")),
        description=sanitize_text(_as_text(raw.get("description"))),
        prerequisites=sanitize_text(_as_text(raw.get("prerequisites"))),
        department=sanitize_text(_as_text(raw.get("department"))),
    )


def combine_course_data(
    schedule_rows: Any,
    description_rows: Any = None,
    course_code: str = "",
) -> Optional[Course]:
    """
    Build a Course from schedule-feed rows plus the (optional) description
    response. Returns None when the feed is empty, i.e. the course is not
    offered in that term.
    """
    rows = _rows(schedule_rows)
    if not rows:
        return None

    descriptions = _rows(description_rows)
    desc: Mapping[str, Any] = descriptions[0] if descriptions else {}

    code = normalize_course_code(course_code)
    if not code:
        first = rows[0]
        code = normalize_course_code(
            f"{_as_text(first.get('subject'))} {_as_text(first.get('catalog'))}"
        )
    if not code:
        return None

    title = _first(desc, "title") or _first(rows[0], "courseTitle")
    department = sanitize_text(_as_text(desc.get("subject"))) or code.split(" ")[0]

    return Course(
        code=code,
        title=sanitize_text(_as_text(title)),
        credits=_to_float(desc.get("creditValue")),
        sections=_sections_from_feed(rows),
        description=sanitize_text(_as_text(desc.get("description"))),
        prerequisites=sanitize_text(_as_text(desc.get("prerequisites"))),
        department=department,
    )


def normalize_course(
    raw: Any,
    course_code: str = "",
    description: Any = None,
) -> Optional[Course]:
    """
    Normalize one raw course of either shape.

    :param raw: catalog dict, or list of schedule-feed rows.
    :param course_code: used when the record itself carries no code.
    :param description: description rows for a schedule feed (ignored for
        catalog records, which carry their own description).
    """
    record = classify_record(raw)
    if record is None:
        return None
    if record.shape == SHAPE_SCHEDULE_FEED:
        return combine_course_data(record.payload, description, course_code)
    return _course_from_catalog(record.payload, course_code)


def normalize_courses(raw_list: Any) -> List[Course]:
    """Normalize a catalog listing; courses without valid sections are left out."""
    if not isinstance(raw_list, list):
        return []
    courses: List[Course] = []
    for raw in raw_list:
        course = normalize_course(raw)
        if course is not None and course.sections:
            courses.append(course)
    return courses
